import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote, urlparse

from redis import ConnectionPool, Redis
from redis.exceptions import RedisError

from .errors import ConnectionError, StoreUnavailable
from .retry import retry

log = logging.getLogger(__name__)

DEFAULT_PORT = 6379


# Elements are returned as stored; bytes that are not UTF-8 become U+FFFD.

def decode(value: Any) -> str:
    if isinstance(value, str):
        return value
    return value.decode("utf-8", errors="replace")


def parse_host(host: str) -> Dict[str, Any]:
    """Turn ``name:port``, ``name`` or a ``redis://`` URL into pool kwargs."""
    kwargs: Dict[str, Any] = {}
    if "://" not in host:
        name, sep, port = host.rpartition(":")
        if not sep:
            name, port = host, ""
        kwargs["host"] = name
        kwargs["port"] = int(port) if port else DEFAULT_PORT
        return kwargs
    u = urlparse(host)
    kwargs["host"] = u.hostname or "localhost"
    kwargs["port"] = u.port or DEFAULT_PORT
    if u.path and len(u.path) > 1:
        kwargs["db"] = int(u.path.lstrip("/"))
    if u.username:
        kwargs["username"] = unquote(u.username)
    if u.password:
        kwargs["password"] = unquote(u.password)
    return kwargs


class StoreClient:
    """List operations bound to one Redis connection pool.

    Every request-scoped operation turns redis errors into StoreUnavailable.
    The pool does its own locking, so one client is shared by all requests.
    """

    def __init__(self, pool: ConnectionPool, host: str = "") -> None:
        self.pool = pool
        self.host = host
        self.redis = Redis(connection_pool=pool)
        # Same pool, but replies come back exactly as the server sent them.
        self._raw = Redis(connection_pool=pool)
        self._raw.response_callbacks.clear()

    @classmethod
    def from_host(cls, host: str) -> "StoreClient":
        return cls(ConnectionPool(**parse_host(host)), host=host)

    def __repr__(self) -> str:
        return "StoreClient({!r})".format(self.host)

    def ping(self) -> bool:
        return bool(self.redis.ping())

    def list_get_all(self, key: str) -> List[str]:
        try:
            items = self.redis.lrange(key, 0, -1)
        except RedisError as error:
            raise StoreUnavailable(str(error)) from error
        return [decode(i) for i in items]

    def list_append(self, key: str, value: str) -> None:
        try:
            self.redis.rpush(key, value)
        except RedisError as error:
            raise StoreUnavailable(str(error)) from error

    def raw_command(self, *args: Any) -> bytes:
        try:
            reply = self._raw.execute_command(*args)
        except RedisError as error:
            raise StoreUnavailable(str(error)) from error
        if isinstance(reply, str):
            return reply.encode()
        return reply

    def close(self) -> None:
        self.pool.disconnect()


def connect(
    host: str,
    max_attempts: int,
    delay: float = 2.0,
    client_factory: Callable[[str], StoreClient] = StoreClient.from_host,
    sleep: Callable[[float], None] = time.sleep,
) -> StoreClient:
    """Open a client to ``host`` and check it answers PING.

    A fresh pool is built for every attempt. Raises ConnectionError once
    ``max_attempts`` attempts have failed.
    """
    last_error: Optional[BaseException] = None

    def attempt(n: int) -> StoreClient:
        client = client_factory(host)
        try:
            client.ping()
        except Exception:
            client.close()
            raise
        return client

    def failed(n: int, error: BaseException) -> None:
        nonlocal last_error
        last_error = error
        log.warning("Failed to connect to Redis at %s (attempt %d/%d): %s", host, n, max_attempts, error)

    try:
        client = retry(attempt, max_attempts, delay, retry_on=(RedisError, OSError), on_failure=failed, sleep=sleep)
    except (RedisError, OSError):
        raise ConnectionError(host, max_attempts, last_error) from last_error
    log.info("Connected to Redis at %s", host)
    return client
