"""Pytest configuration and fixtures for grd tests."""

import io
import logging
import tarfile
import zipfile
from collections.abc import AsyncIterator

import orjson
import pytest


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Enable log propagation for all loggers during tests.

    This allows pytest's caplog fixture to capture logs from all loggers,
    even those created with propagate=False in production code.
    """
    original_propagation = {}
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith("grd"):
            logger = logging.getLogger(name)
            original_propagation[name] = logger.propagate
            logger.propagate = True

    yield

    for name, propagate_value in original_propagation.items():
        logger = logging.getLogger(name)
        logger.propagate = propagate_value


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real config directory, tokens and keyring."""
    monkeypatch.setenv("GRD_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    monkeypatch.setattr("grd.auth.keyring.get_password", lambda *args: None)


class FakeContent:
    """Stand-in for ``aiohttp.StreamReader``."""

    def __init__(self, body: bytes) -> None:
        self.body = body

    def iter_chunked(self, size: int) -> AsyncIterator[bytes]:
        return self._chunks(size)

    async def _chunks(self, size: int) -> AsyncIterator[bytes]:
        for start in range(0, len(self.body), size):
            yield self.body[start : start + size]


class FakeResponse:
    """Stand-in for ``aiohttp.ClientResponse`` used as a context manager."""

    def __init__(
        self,
        status: int = 200,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status = status
        self.body = body
        self.headers = headers if headers is not None else {}
        self.content = FakeContent(body)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False

    async def read(self) -> bytes:
        return self.body


class FakeSession:
    """Stand-in for ``aiohttp.ClientSession`` routing GETs by URL.

    A route maps to one response, or to a list served in order.
    """

    def __init__(self, routes: dict[str, FakeResponse | list[FakeResponse]]) -> None:
        self.routes = routes
        self.requests: list[tuple[str, dict | None, dict | None]] = []

    def get(self, url: str, headers: dict | None = None, params: dict | None = None):
        self.requests.append((url, headers, params))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status=404, body=b'{"message": "Not Found"}')
        if isinstance(route, list):
            return route.pop(0)
        return route

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


@pytest.fixture
def fake_session():
    """Factory building a FakeSession from a route table."""
    return FakeSession


@pytest.fixture
def json_response():
    """Factory building a JSON API response."""

    def _make(payload, status: int = 200, headers: dict[str, str] | None = None):
        return FakeResponse(status=status, body=orjson.dumps(payload), headers=headers)

    return _make


@pytest.fixture
def binary_response():
    """Factory building a download response with a Content-Length header."""

    def _make(body: bytes, declared: int | None = None, status: int = 200):
        headers = {}
        length = len(body) if declared is None else declared
        if length >= 0:
            headers["Content-Length"] = str(length)
        return FakeResponse(status=status, body=body, headers=headers)

    return _make


def build_tar_gz(files: dict[str, bytes]) -> bytes:
    out = io.BytesIO()
    with tarfile.open(fileobj=out, mode="w:gz") as archive:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return out.getvalue()


def build_tar(files: dict[str, bytes]) -> bytes:
    out = io.BytesIO()
    with tarfile.open(fileobj=out, mode="w") as archive:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return out.getvalue()


def build_zip(files: dict[str, bytes]) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as archive:
        for name, data in files.items():
            archive.writestr(name, data)
    return out.getvalue()


def patch_zip_headers(
    data: bytes, local: tuple[int, int], central: tuple[int, int]
) -> bytes:
    """Overwrite one little-endian u16 field in the local and central headers.

    Each of ``local`` and ``central`` is an (offset, value) pair relative to
    the header signature of the first entry.
    """
    patched = bytearray(data)
    for signature, (offset, value) in (
        (b"PK\x03\x04", local),
        (b"PK\x01\x02", central),
    ):
        start = patched.find(signature) + offset
        patched[start : start + 2] = value.to_bytes(2, "little")
    return bytes(patched)


@pytest.fixture
def archives():
    """Builders for in-memory test archives."""

    class Archives:
        tar_gz = staticmethod(build_tar_gz)
        tar = staticmethod(build_tar)
        zip = staticmethod(build_zip)
        patch_zip_headers = staticmethod(patch_zip_headers)

    return Archives
