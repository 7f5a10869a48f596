import os
from dataclasses import dataclass
from typing import Mapping, Optional

LISTEN_HOST = "0.0.0.0"
LISTEN_PORT = 3000

MASTER_HOST = "redis-master:6379"
REPLICA_HOST = "redis-replica:6379"
MAX_ATTEMPTS = 5
RETRY_DELAY = 2.0

LOG_FORMAT = "%(asctime)-15s %(levelname)-5s %(name)s: %(message)s"
LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


def public_dir_from_env(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get("GUESTBOOK_PUBLIC_DIR", "public")


@dataclass(frozen=True)
class Settings:
    """Backend addresses and startup behaviour.

    Defaults are the fixed production values; a deployment may override
    them through ``GUESTBOOK_*`` environment variables.
    """

    master_host: str = MASTER_HOST
    replica_host: str = REPLICA_HOST
    max_attempts: int = MAX_ATTEMPTS
    retry_delay: float = RETRY_DELAY
    public_dir: str = "public"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        log_level = env.get("GUESTBOOK_LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ValueError("invalid GUESTBOOK_LOG_LEVEL: {!r}".format(log_level))
        max_attempts = int(env.get("GUESTBOOK_MAX_ATTEMPTS", str(MAX_ATTEMPTS)))
        if max_attempts < 1:
            raise ValueError("GUESTBOOK_MAX_ATTEMPTS must be >= 1")
        return cls(
            master_host=env.get("GUESTBOOK_MASTER_HOST", MASTER_HOST),
            replica_host=env.get("GUESTBOOK_REPLICA_HOST", REPLICA_HOST),
            max_attempts=max_attempts,
            retry_delay=float(env.get("GUESTBOOK_RETRY_DELAY", str(RETRY_DELAY))),
            public_dir=public_dir_from_env(env),
            log_level=log_level,
        )
