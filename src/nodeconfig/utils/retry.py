# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/utils/retry.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from nodeconfig.errors import PollTimeoutError

log = logging.getLogger("nodeconfig")


def poll_until(
    check: Callable[[], bool],
    *,
    interval: float,
    timeout: float,
    description: str,
    transient: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """
    Call ``check`` every ``interval`` seconds until it returns True.

    check: returns True when the awaited condition holds
    interval: seconds between attempts
    timeout: overall deadline in seconds, measured from the first attempt
    description: what is being awaited, used in logs and the timeout error
    transient: exception types that are logged and swallowed; anything else
        propagates immediately
    sleep, clock: injectable for tests

    Raises PollTimeoutError when the deadline passes without success.
    """
    deadline = clock() + timeout
    last_exc: Optional[Exception] = None
    attempt = 0

    while True:
        attempt += 1
        try:
            if check():
                log.debug("[poll] %s satisfied after %d attempt(s)", description, attempt)
                return
        except transient as exc:
            last_exc = exc
            log.debug("[poll] %s attempt %d failed: %s", description, attempt, exc)

        if clock() + interval > deadline:
            break
        sleep(interval)

    raise PollTimeoutError(description, timeout, last_exc)
