import io
import logging
import zipfile
from pathlib import Path

import pytest

from localedb.common.config_loader import FetchSource
from localedb.common.errors import StageError
from localedb.common.http import HttpRequestError
from localedb.sources.fetch import extract_members, run_fetch

LOGGER = logging.getLogger("localedb.test.fetch")


def _zip_bytes(members: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, text in members.items():
            archive.writestr(name, text)
    return buffer.getvalue()


class FakeClient:
    def __init__(self, files: dict[str, bytes], json_payloads: dict[str, object] | None = None):
        self.files = files
        self.json_payloads = json_payloads or {}
        self.downloaded: list[str] = []

    def get_json(self, url: str):
        return self.json_payloads[url]

    def download(self, url: str, target_path: Path) -> Path:
        if url not in self.files:
            raise HttpRequestError(f"HTTP status: 404 for {url}")
        self.downloaded.append(url)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_bytes(self.files[url])
        return target_path

    def close(self) -> None:
        pass


CLDR = FetchSource(
    name="cldr",
    url="https://example.test/cldr/{version}.zip",
    target="cldr",
    archive=True,
    github_repo="unicode-org/cldr-json",
    version="latest",
    members=("*/cldr-localenames-full/main/*/territories.json",),
)
PLAIN = FetchSource(name="mledoze", url="https://example.test/countries.json", target="mledoze.json")


@pytest.mark.integration
def test_fetch_plain_and_archive_sources(tmp_path: Path):
    client = FakeClient(
        files={
            "https://example.test/countries.json": b"[]",
            "https://example.test/cldr/46.0.0.zip": _zip_bytes(
                {
                    "cldr-json-46.0.0/cldr-json/cldr-localenames-full/main/en/territories.json": "{}",
                    "cldr-json-46.0.0/cldr-json/cldr-numbers-full/main/en/numbers.json": "{}",
                }
            ),
        },
        json_payloads={"https://api.github.com/repos/unicode-org/cldr-json/releases/latest": {"tag_name": "46.0.0"}},
    )

    result = run_fetch((PLAIN, CLDR), tmp_path, "run-fetch", LOGGER, client=client)

    assert result["fetched"] == {"mledoze": 1, "cldr": 1}
    assert result["failed_sources"] == []
    assert (tmp_path / "mledoze.json").read_text(encoding="utf-8") == "[]"
    assert (tmp_path / "cldr" / "cldr-json" / "cldr-localenames-full" / "main" / "en" / "territories.json").exists()
    assert not (tmp_path / "cldr" / "cldr-json" / "cldr-numbers-full").exists()


@pytest.mark.integration
def test_fetch_failing_source_is_skipped(tmp_path: Path):
    client = FakeClient(files={"https://example.test/countries.json": b"[]"})
    pinned = FetchSource(name="cldr", url="https://example.test/cldr/{version}.zip", target="cldr", archive=True, version="45.0.0")

    result = run_fetch((PLAIN, pinned), tmp_path, "run-fetch", LOGGER, client=client)

    assert result["failed_sources"] == ["cldr"]
    assert result["fetched"] == {"mledoze": 1}


@pytest.mark.integration
def test_fetch_fails_when_every_source_fails(tmp_path: Path):
    client = FakeClient(files={})
    with pytest.raises(StageError):
        run_fetch((PLAIN,), tmp_path, "run-fetch", LOGGER, client=client)


@pytest.mark.integration
def test_fetch_only_filters_sources(tmp_path: Path):
    client = FakeClient(files={"https://example.test/countries.json": b"[]"})

    result = run_fetch((PLAIN, CLDR), tmp_path, "run-fetch", LOGGER, only=["mledoze"], client=client)

    assert result["fetched"] == {"mledoze": 1}
    with pytest.raises(StageError, match="nope"):
        run_fetch((PLAIN,), tmp_path, "run-fetch", LOGGER, only=["nope"], client=client)


def test_extract_members_skips_unsafe_paths(tmp_path: Path):
    archive = tmp_path / "a.zip"
    archive.write_bytes(_zip_bytes({"top/../../evil.txt": "x", "flat.csv": "a,b", "top/keep.csv": "c"}))

    count = extract_members(archive, tmp_path / "out", ())

    assert count == 2
    assert (tmp_path / "out" / "flat.csv").exists()
    assert (tmp_path / "out" / "keep.csv").exists()
    assert not (tmp_path / "evil.txt").exists()
