#!/usr/bin/env python3
"""Drive one applier over a batch of repositories with isolated failures."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Dict

import requests

from classifier import classify
from errors import (CancelledError, MigrationError, TransportError,
                    UnknownPlatformError)
from logging_utils import Logger
from models import Outcome, RepositoryRef
from report import MigrationReport, ReportAggregator
from utils import plural

if TYPE_CHECKING:
    from appliers import Applier
    from config import ActionRequest

MAX_WORKERS_LIMIT = 10


def _error_from_exception(exc: Exception) -> MigrationError:
    if isinstance(exc, MigrationError):
        return exc
    if isinstance(exc, (requests.Timeout, requests.ConnectionError, TimeoutError)):
        return TransportError(f"{type(exc).__name__}: {exc}")
    return UnknownPlatformError(f"{type(exc).__name__}: {exc}")


class ActionExecutor:
    """Applies an action to every repository of a request.

    A failed repository never stops the batch and nothing is retried here;
    the executor only isolates, orders and aggregates.
    """

    def __init__(self, max_workers: int = 5) -> None:
        if not 1 <= max_workers <= MAX_WORKERS_LIMIT:
            raise ValueError(f"max_workers must be between 1 and {MAX_WORKERS_LIMIT}")
        self.max_workers = max_workers

    def _apply_one(self, applier: "Applier", ref: RepositoryRef) -> Outcome:
        try:
            response = applier.invoke(ref)
        except Exception as e:  # isolate every per-repository failure
            return Outcome.failed(_error_from_exception(e))
        return classify(applier.kind, response)

    def _log_outcome(self, index: int, total: int, ref: RepositoryRef, outcome: Outcome) -> None:
        if outcome.is_failure:
            Logger.debug(f"[{index + 1}/{total}] {ref.full_name}: {outcome.kind.value}: {outcome.message}")
        else:
            Logger.debug(f"[{index + 1}/{total}] {ref.full_name}: {outcome.kind.value}")

    def run(self, request: "ActionRequest", applier: "Applier") -> MigrationReport:
        refs = request.targets
        total = len(refs)
        aggregator = ReportAggregator(request.action, refs)
        Logger.info(
            f"running {request.action.value} on {plural(total, 'repository')} "
            f"with {min(self.max_workers, max(total, 1))} workers"
        )

        pool = ThreadPoolExecutor(max_workers=self.max_workers)
        futures: Dict[int, Future] = {}
        try:
            for index, ref in enumerate(refs):
                futures[index] = pool.submit(self._apply_one, applier, ref)
            for index, future in futures.items():
                outcome = future.result()
                self._log_outcome(index, total, refs[index], outcome)
                aggregator.record(index, outcome)
        except KeyboardInterrupt:
            Logger.warn("interrupted: waiting for in-flight calls, skipping the rest")
            for future in futures.values():
                future.cancel()
            self._collect_after_interrupt(futures, aggregator, refs)
        finally:
            pool.shutdown(wait=True)

        return aggregator.finalize()

    def _collect_after_interrupt(
        self,
        futures: Dict[int, Future],
        aggregator: ReportAggregator,
        refs,
    ) -> None:
        for index in aggregator.pending():
            future = futures.get(index)
            if future is None or future.cancelled():
                outcome = Outcome.failed(
                    CancelledError(f"cancelled before {refs[index].full_name} was processed")
                )
            else:
                try:
                    outcome = future.result()
                except KeyboardInterrupt:
                    outcome = Outcome.failed(
                        CancelledError(f"interrupted while processing {refs[index].full_name}")
                    )
            aggregator.record(index, outcome)
