"""Pytest fixtures for guestbook tests."""

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from guestbook.app import AppContext, create_app
from guestbook.config import Settings
from guestbook.errors import StoreUnavailable


class FakeStore:
    """In-memory stand-in for StoreClient, keyed lists only."""

    def __init__(self, info: bytes = b"# Server\r\nredis_version:7.2.4\r\n") -> None:
        self.lists: Dict[str, List[str]] = {}
        self.info = info
        self.down = False
        self.closed = False
        self.error: Optional[Exception] = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error
        if self.down:
            raise StoreUnavailable("Error 111 connecting to redis:6379. Connection refused.")

    def list_get_all(self, key: str) -> List[str]:
        self._check()
        return list(self.lists.get(key, []))

    def list_append(self, key: str, value: str) -> None:
        self._check()
        self.lists.setdefault(key, []).append(value)

    def raw_command(self, *args: str) -> bytes:
        self._check()
        assert args == ("INFO",)
        return self.info

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path) -> Settings:
    # No public dir unless a test creates one.
    return Settings(public_dir=str(tmp_path / "public"), retry_delay=0.0)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def client(store: FakeStore, settings: Settings) -> TestClient:
    """Client for an app whose master and replica share one consistent store."""
    app = create_app(AppContext(master=store, replica=store), settings)
    return TestClient(app)
