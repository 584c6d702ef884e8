from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import pandas as pd

from .config import level_label

SAMPLE_COLUMNS = ["level", "label", "category", "sample", "gas_used", "succeeded"]


@dataclass(frozen=True)
class Measurement:
    category: str
    cost: int
    succeeded: bool = True


@dataclass
class CategoryStats:
    """Samples for one category at one load level; the mean is always derived."""

    samples: list[int] = field(default_factory=list)
    outcomes: list[bool] = field(default_factory=list)

    @property
    def average(self) -> float:
        if not self.samples:
            return 0
        return sum(self.samples) / len(self.samples)

    @property
    def failures(self) -> int:
        return self.outcomes.count(False)

    @property
    def successful_average(self) -> float | None:
        costs = [cost for cost, ok in zip(self.samples, self.outcomes) if ok]
        if not costs:
            return None
        return sum(costs) / len(costs)

    def add(self, measurement: Measurement) -> None:
        if measurement.cost < 0:
            raise ValueError("gas cost must be non-negative")
        self.samples.append(int(measurement.cost))
        self.outcomes.append(measurement.succeeded)

    def to_dict(self) -> dict[str, Any]:
        return {"measurements": list(self.samples), "avg": self.average}


class ResultAggregator:
    """Per-category running statistics for a single load level."""

    def __init__(self, level: int, categories: Iterable[str]) -> None:
        self.level = level
        self._stats: dict[str, CategoryStats] = {name: CategoryStats() for name in categories}

    @property
    def label(self) -> str:
        return level_label(self.level)

    @property
    def categories(self) -> list[str]:
        return list(self._stats)

    def record(self, category: str, value: int, succeeded: bool = True) -> CategoryStats:
        stats = self.stats(category)
        stats.add(Measurement(category=category, cost=value, succeeded=succeeded))
        return stats

    def stats(self, category: str) -> CategoryStats:
        try:
            return self._stats[category]
        except KeyError:
            raise ValueError(f"Unknown measurement category: {category!r}") from None

    def items(self):
        return self._stats.items()

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {name: stats.to_dict() for name, stats in self._stats.items()}


class RunReport:
    """All levels measured so far in a session, keyed by ``<N>_synths``."""

    def __init__(self, categories: Iterable[str]) -> None:
        self._categories = list(categories)
        self._levels: dict[str, ResultAggregator] = {}
        self._last_level = 0

    def begin_level(self, level: int) -> ResultAggregator:
        if level <= self._last_level:
            raise ValueError(
                f"load levels must increase strictly; got {level} after {self._last_level}"
            )
        aggregator = ResultAggregator(level, self._categories)
        self._levels[aggregator.label] = aggregator
        self._last_level = level
        return aggregator

    def levels(self) -> list[ResultAggregator]:
        return list(self._levels.values())

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, label: str) -> ResultAggregator:
        return self._levels[label]

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        return {label: aggregator.to_dict() for label, aggregator in self._levels.items()}

    def build_dataframe(self) -> pd.DataFrame:
        rows = []
        for aggregator in self._levels.values():
            for category, stats in aggregator.items():
                for index, (cost, ok) in enumerate(zip(stats.samples, stats.outcomes), start=1):
                    rows.append(
                        {
                            "level": aggregator.level,
                            "label": aggregator.label,
                            "category": category,
                            "sample": index,
                            "gas_used": cost,
                            "succeeded": ok,
                        }
                    )
        if not rows:
            return pd.DataFrame(columns=SAMPLE_COLUMNS)
        return pd.DataFrame(rows, columns=SAMPLE_COLUMNS)

