from __future__ import annotations

from pathlib import Path

import pytest
import requests

from localedb.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, chunks=None, fail_stream=False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self._chunks = chunks or []
        self._fail_stream = fail_stream

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload

    def iter_content(self, chunk_size: int):
        for chunk in self._chunks:
            yield chunk
        if self._fail_stream:
            raise requests.ConnectionError("reset")


def test_http_get_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.get_json("https://example.com")

    assert payload == {"ok": True}


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")


def test_http_client_error_is_not_retried(monkeypatch):
    calls = []
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))

    def fake_request(**kwargs):
        calls.append(kwargs["url"])
        return FakeResponse(404)

    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com")
    assert len(calls) == 1


def test_http_retries_until_success(monkeypatch):
    responses = [FakeResponse(502), FakeResponse(200, {"ok": 1})]
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: responses.pop(0))

    assert client.get_json("https://example.com") == {"ok": 1}


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com")


def test_download_writes_target(monkeypatch, tmp_path: Path):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, chunks=[b"ab", b"", b"cd"]))

    target = client.download("https://example.com/file", tmp_path / "out" / "file.bin")

    assert target.read_bytes() == b"abcd"
    assert not (tmp_path / "out" / "file.bin.part").exists()


def test_interrupted_download_keeps_previous_file(monkeypatch, tmp_path: Path):
    target = tmp_path / "file.bin"
    target.write_bytes(b"old")
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(
        client.session,
        "request",
        lambda **_kwargs: FakeResponse(200, chunks=[b"new"], fail_stream=True),
    )

    with pytest.raises(RetryableHttpError):
        client.download("https://example.com/file", target)

    assert target.read_bytes() == b"old"
    assert not (tmp_path / "file.bin.part").exists()
