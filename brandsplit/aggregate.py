"""
Channel results, cross-channel merges and derived ratios.

A ChannelResult holds per-segment totals for the whole date range plus the
same metrics broken down by period key. Derived values (CPA, ROAS, % branded)
are never stored; they are computed from the accumulated vectors on demand.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

from brandsplit.metrics import BRAND_SEGMENTS, MetricVector, Segment


@dataclass
class ChannelResult:
    segments: Tuple[Segment, ...] = BRAND_SEGMENTS
    totals: Dict[Segment, MetricVector] = field(default_factory=dict)
    period_data: Dict[str, Dict[Segment, MetricVector]] = field(default_factory=dict)

    def __post_init__(self):
        for segment in self.segments:
            self.totals.setdefault(segment, MetricVector.zero())

    def empty_bucket(self) -> Dict[Segment, MetricVector]:
        return {segment: MetricVector.zero() for segment in self.segments}

    def bucket(self, period_key: str) -> Dict[Segment, MetricVector]:
        """Get-or-insert-zero: the bucket for period_key, created empty on first use."""
        if period_key not in self.period_data:
            self.period_data[period_key] = self.empty_bucket()
        return self.period_data[period_key]

    def add(self, period_key: str, segment: Segment, metrics: MetricVector) -> None:
        """Route one row's metrics into its period slot and the matching total."""
        if segment not in self.segments:
            raise ValueError(f"Segment {segment.value} not tracked by this result")
        bucket = self.bucket(period_key)
        bucket[segment] = bucket[segment] + metrics
        self.totals[segment] = self.totals[segment] + metrics

    def periods(self) -> list:
        return sorted(self.period_data)

    def grand_total(self) -> MetricVector:
        total = MetricVector.zero()
        for segment in self.segments:
            total = total + self.totals[segment]
        return total


def merge_totals(target: Dict[Segment, MetricVector], source: Dict[Segment, MetricVector]) -> Dict[Segment, MetricVector]:
    """Add every segment total in source into target."""
    for segment, metrics in source.items():
        target[segment] = target.get(segment, MetricVector.zero()) + metrics
    return target


def merge_period_data(target: dict, source: dict, segments: Iterable[Segment] = BRAND_SEGMENTS) -> dict:
    """
    Add source period data into target.

    Periods only present in source get a zero bucket in target first, so no
    period present in either operand is ever dropped.
    """
    segments = tuple(segments)
    for period_key, source_bucket in source.items():
        if period_key not in target:
            target[period_key] = {segment: MetricVector.zero() for segment in segments}
        target_bucket = target[period_key]
        for segment, metrics in source_bucket.items():
            target_bucket[segment] = target_bucket.get(segment, MetricVector.zero()) + metrics
    return target


def merge_results(target: ChannelResult, source: ChannelResult) -> ChannelResult:
    merge_totals(target.totals, source.totals)
    merge_period_data(target.period_data, source.period_data, target.segments)
    return target


def combine(results: Iterable[ChannelResult], segments: Tuple[Segment, ...] = BRAND_SEGMENTS) -> ChannelResult:
    """Fold channel results into a fresh combined result. Inputs are left untouched."""
    combined = ChannelResult(segments=segments)
    for result in results:
        merge_results(combined, result)
    return combined


# =============================================================================
# DERIVED RATIOS
# =============================================================================


def cpa(metrics: MetricVector) -> float:
    """Cost per conversion; 0 when there are no conversions."""
    if metrics.conversions > 0:
        return metrics.cost / metrics.conversions
    return 0


def roas(metrics: MetricVector) -> float:
    """Conversion value / cost; 0 when there is no cost."""
    if metrics.cost > 0:
        return metrics.conversions_value / metrics.cost
    return 0


def metric_value(metrics: MetricVector, metric: str):
    """Raw field value, or a derived ratio for 'cpa' / 'roas'."""
    if metric == "cpa":
        return cpa(metrics)
    if metric == "roas":
        return roas(metrics)
    return metrics.value(metric)


def branded_ratio(bucket: Dict[Segment, MetricVector], metric: str, include_blank: bool = False) -> float:
    """
    Share of `metric` that is branded within one period bucket.

    The denominator is branded + non-branded (+ blank when include_blank and
    the bucket has one). Returns 0 when the denominator is 0.
    """
    zero = MetricVector.zero()
    branded = metric_value(bucket.get(Segment.BRANDED, zero), metric)
    total = branded + metric_value(bucket.get(Segment.NON_BRANDED, zero), metric)
    if include_blank and Segment.BLANK in bucket:
        total += metric_value(bucket[Segment.BLANK], metric)
    if total > 0:
        return branded / total
    return 0
