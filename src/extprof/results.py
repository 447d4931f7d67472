"""Informational results produced by external profilers.

These carry no comparable value: the numeric field is a NaN placeholder and the
useful content is the free-text output (saved artifact path or an error
explanation). They are always tagged as secondary so they never take part in
primary score comparisons.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List

SEPARATOR = "-" * 44
NO_UNITS = "N/A"


class ResultRole(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class AggregationPolicy(str, Enum):
    SUM = "sum"
    NONE = "none"


@dataclass(frozen=True)
class InformationalResult:
    label: str
    output: str
    role: ResultRole = ResultRole.SECONDARY
    value: float = math.nan
    units: str = NO_UNITS
    policy: AggregationPolicy = AggregationPolicy.SUM

    def extended_info(self) -> str:
        return f"{self.label} Messages:\n{SEPARATOR}\n{self.output}"

    @property
    def is_comparable(self) -> bool:
        return False

    def thread_aggregate(self, others: Iterable["InformationalResult"]) -> "InformationalResult":
        return aggregate_results([self, *others])

    def iteration_aggregate(self, others: Iterable["InformationalResult"]) -> "InformationalResult":
        return aggregate_results([self, *others])


def aggregate_results(results: Iterable[InformationalResult]) -> InformationalResult:
    """Fold same-label results into one, concatenating outputs in encounter order."""
    items = list(results)
    if not items:
        raise ValueError("Cannot aggregate an empty set of informational results.")
    first = items[0]
    labels = {item.label for item in items}
    if len(labels) > 1:
        raise ValueError(f"Cannot aggregate results with different labels: {sorted(labels)}")
    output = "".join(item.output for item in items)
    if first.policy is AggregationPolicy.SUM:
        value = math.fsum(item.value for item in items)
    else:
        value = math.nan
    return replace(first, output=output, value=value)


def merge_results(results: Iterable[InformationalResult]) -> List[InformationalResult]:
    """Group a flat result stream by label (first-seen order) and aggregate each group."""
    groups: Dict[str, List[InformationalResult]] = {}
    for result in results:
        groups.setdefault(result.label, []).append(result)
    return [aggregate_results(group) for group in groups.values()]


__all__ = [
    "AggregationPolicy",
    "InformationalResult",
    "NO_UNITS",
    "ResultRole",
    "aggregate_results",
    "merge_results",
]
