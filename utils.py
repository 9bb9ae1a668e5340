#!/usr/bin/env python3
"""Utility helpers for gitlab-github-batch."""

from __future__ import annotations

import threading
import time
from typing import List

from logging_utils import Logger


class RateLimiter:
    """Per-minute request limiter shared by the worker threads of one client."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Wait if necessary to respect rate limits."""
        current_time = time.time()

        with self.lock:
            self._clean_old_requests(current_time)
            if len(self.requests) >= self.max_requests:
                wait_time = 60 - (current_time - self.requests[0])
                if wait_time > 0:
                    Logger.warn(
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s"
                    )
                    time.sleep(wait_time)
                    current_time = time.time()
                    self._clean_old_requests(current_time)
            self.requests.append(current_time)

    def _clean_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute."""
        cutoff_time = current_time - 60
        self.requests = [
            req_time for req_time in self.requests if req_time > cutoff_time
        ]


def plural(count: int, noun: str) -> str:
    """Return ``'1 repository'`` / ``'2 repositories'`` style phrases."""
    if count == 1:
        return f"{count} {noun}"
    if noun.endswith("y"):
        return f"{count} {noun[:-1]}ies"
    return f"{count} {noun}s"
