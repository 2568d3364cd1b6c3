"""Fetch stage: download raw source files into the data directory."""

from __future__ import annotations

import fnmatch
import logging
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath

from localedb.common.config_loader import FetchSource
from localedb.common.errors import PipelineError, StageError
from localedb.common.fs import ensure_dir
from localedb.common.http import HttpClient, HttpRequestError
from localedb.common.logging import log_event

GITHUB_LATEST_RELEASE_URL = "https://api.github.com/repos/{repo}/releases/latest"


def resolve_version(client: HttpClient, source: FetchSource) -> str | None:
    if source.version != "latest":
        return source.version
    if not source.github_repo:
        raise HttpRequestError(f"Source {source.name} asks for the latest version but names no repository")
    payload = client.get_json(GITHUB_LATEST_RELEASE_URL.format(repo=source.github_repo))
    tag = payload.get("tag_name") if isinstance(payload, dict) else None
    if not tag:
        raise HttpRequestError(f"No release tag found for {source.github_repo}")
    return tag


def _member_target(name: str) -> PurePosixPath | None:
    """Archive path relative to the extraction target, minus the archive's top-level folder."""
    parts = PurePosixPath(name).parts
    if any(part in ("..", "") for part in parts) or PurePosixPath(name).is_absolute():
        return None
    if len(parts) > 1:
        parts = parts[1:]
    return PurePosixPath(*parts)


def extract_members(archive_path: Path, target_dir: Path, patterns: tuple[str, ...]) -> int:
    """Extract files whose archive path matches any pattern; all files when none are given."""
    extracted = 0
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            if patterns and not any(fnmatch.fnmatch(info.filename, pattern) for pattern in patterns):
                continue
            relative = _member_target(info.filename)
            if relative is None:
                continue
            destination = target_dir.joinpath(*relative.parts)
            ensure_dir(destination.parent)
            with archive.open(info) as src, destination.open("wb") as dst:
                shutil.copyfileobj(src, dst)
            extracted += 1
    return extracted


def fetch_source(client: HttpClient, source: FetchSource, data_dir: Path) -> int:
    """Download one source; returns the number of files written."""
    version = resolve_version(client, source)
    url = source.url.format(version=version) if version else source.url
    target = data_dir / source.target
    if not source.archive:
        client.download(url, target)
        return 1

    with tempfile.TemporaryDirectory() as tmp:
        archive_path = client.download(url, Path(tmp) / "archive.zip")
        staging = Path(tmp) / "staging"
        extracted = extract_members(archive_path, staging, source.members)
        if extracted == 0:
            raise StageError(f"Archive for {source.name} contained no matching files")
        if target.exists():
            shutil.rmtree(target)
        ensure_dir(target.parent)
        shutil.move(str(staging), str(target))
    return extracted


def run_fetch(
    sources: tuple[FetchSource, ...],
    data_dir: Path,
    run_id: str,
    logger: logging.Logger,
    *,
    only: list[str] | None = None,
    client: HttpClient | None = None,
) -> dict:
    selected = [source for source in sources if not only or source.name in only]
    unknown = sorted(set(only or ()) - {source.name for source in sources})
    if unknown:
        raise StageError(f"Unknown fetch sources: {', '.join(unknown)}")

    owns_client = client is None
    client = client or HttpClient()
    results: dict[str, int] = {}
    failures: list[str] = []
    try:
        for source in selected:
            try:
                files = fetch_source(client, source, data_dir)
            except (PipelineError, OSError, zipfile.BadZipFile) as exc:
                failures.append(source.name)
                log_event(
                    logger,
                    f"fetch failed for {source.name}: {exc}",
                    level=logging.WARNING,
                    run_id=run_id,
                    stage="fetch",
                    source=source.name,
                    event="FETCH_FAIL",
                    status="error",
                    error_code=getattr(exc, "error_code", "IO_ERROR"),
                )
                continue
            results[source.name] = files
            log_event(
                logger,
                f"fetched {source.name}",
                run_id=run_id,
                stage="fetch",
                source=source.name,
                event="FETCH_OK",
                status="ok",
                rows_out=files,
            )
    finally:
        if owns_client:
            client.close()

    if selected and len(failures) >= len(selected):
        raise StageError("Every selected source failed to download")

    return {"run_id": run_id, "fetched": results, "failed_sources": failures}
