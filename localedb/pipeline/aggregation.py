"""Batch runner and the currency/language usage context.

Workers resolve entities of one batch concurrently and only return values.
The caller folds each batch's contributions into ``UsageContext`` in input
order once the batch has finished, so first-seen metadata does not depend on
thread scheduling.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class CountryContribution:
    country_code: str
    languages: tuple[tuple[str, dict[str, Any]], ...] = ()
    currency: tuple[str, dict[str, Any]] | None = None


@dataclass
class UsageContext:
    language_countries: dict[str, list[str]] = field(default_factory=dict)
    currency_countries: dict[str, list[str]] = field(default_factory=dict)
    language_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)
    currency_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)

    @staticmethod
    def _append(usage: dict[str, list[str]], code: str, country_code: str) -> None:
        countries = usage.setdefault(code, [])
        if country_code not in countries:
            countries.append(country_code)

    def apply(self, contribution: CountryContribution) -> None:
        for code, metadata in contribution.languages:
            self._append(self.language_countries, code, contribution.country_code)
            self.language_metadata.setdefault(code, dict(metadata))
        if contribution.currency is not None:
            code, metadata = contribution.currency
            self._append(self.currency_countries, code, contribution.country_code)
            self.currency_metadata.setdefault(code, dict(metadata))


@dataclass(frozen=True)
class BatchOutcome(Generic[T, R]):
    item: T
    batch: int
    result: R | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _batches(items: Sequence[T], batch_size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), batch_size):
        yield items[start : start + batch_size]


def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], R],
    batch_size: int,
    *,
    on_batch_done: Callable[[int, list[BatchOutcome[T, R]]], None] | None = None,
) -> list[BatchOutcome[T, R]]:
    """Run ``worker`` over ``items`` one batch at a time.

    Items inside a batch run concurrently; the next batch starts only after
    the previous one has fully completed. Outcomes keep input order. A worker
    exception is captured on its outcome and never stops the batch.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    outcomes: list[BatchOutcome[T, R]] = []
    with ThreadPoolExecutor(max_workers=batch_size) as executor:
        for batch_no, batch in enumerate(_batches(items, batch_size), start=1):
            futures = [(item, executor.submit(worker, item)) for item in batch]
            batch_outcomes: list[BatchOutcome[T, R]] = []
            for item, future in futures:
                try:
                    batch_outcomes.append(BatchOutcome(item=item, batch=batch_no, result=future.result()))
                except Exception as exc:
                    batch_outcomes.append(BatchOutcome(item=item, batch=batch_no, error=exc))
            if on_batch_done is not None:
                on_batch_done(batch_no, batch_outcomes)
            outcomes.extend(batch_outcomes)
    return outcomes
