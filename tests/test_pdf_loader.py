from types import SimpleNamespace

import pytest

import pdfoverlay.core.pdf_loader as loader_mod
from pdfoverlay.core.pdf_loader import cache_path_for, is_remote, resolve_locator

URL = "https://example.org/papers/1708.08021.pdf"


def test_local_locator_is_returned(tmp_path):
    pdf = tmp_path / "local.pdf"
    pdf.write_bytes(b"%PDF-1.4\n%EOF")
    assert resolve_locator(str(pdf), str(tmp_path / "cache")) == str(pdf)


def test_missing_local_locator_raises(tmp_path):
    with pytest.raises(RuntimeError):
        resolve_locator(str(tmp_path / "nope.pdf"), str(tmp_path / "cache"))


def test_remote_locator_downloaded_once(monkeypatch, tmp_path):
    calls = []

    def _get(url, timeout):
        calls.append(url)
        return SimpleNamespace(status_code=200, content=b"%PDF-1.4\n%EOF")

    monkeypatch.setattr(loader_mod.requests, "get", _get)
    cache = str(tmp_path / "cache")
    first = resolve_locator(URL, cache)
    second = resolve_locator(URL, cache)
    assert first == second == str(cache_path_for(URL, cache))
    assert first.endswith("1708.08021.pdf")
    assert calls == [URL]


def test_remote_http_error_raises(monkeypatch, tmp_path):
    monkeypatch.setattr(loader_mod.requests, "get", lambda url, timeout: SimpleNamespace(status_code=404, content=b""))
    with pytest.raises(RuntimeError, match="HTTP 404"):
        resolve_locator(URL, str(tmp_path))


def test_remote_network_error_raises(monkeypatch, tmp_path):
    def _boom(url, timeout):
        raise loader_mod.requests.ConnectionError("offline")

    monkeypatch.setattr(loader_mod.requests, "get", _boom)
    with pytest.raises(RuntimeError, match="Network error"):
        resolve_locator(URL, str(tmp_path))


def test_is_remote():
    assert is_remote(URL)
    assert not is_remote("/tmp/file.pdf")
