import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


def retry(
    operation: Callable[[int], T],
    attempts: int,
    delay: float,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation(attempt)`` until it succeeds or ``attempts`` run out.

    The delay between attempts is fixed; there is no sleep after the last
    one. ``on_failure(attempt, error)`` is called after every failed attempt.
    The error of the final attempt is re-raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    for attempt in range(1, attempts + 1):
        try:
            return operation(attempt)
        except retry_on as error:
            if on_failure is not None:
                on_failure(attempt, error)
            if attempt == attempts:
                raise
            log.debug("retrying in %.1fs", delay)
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
