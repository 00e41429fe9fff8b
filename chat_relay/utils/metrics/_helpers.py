"""
Helper functions for Prometheus metric registration.

Importing a metrics module twice (uvicorn --reload, test collection) would
raise a duplicate registration error, so existing collectors are looked up
in the default registry instead.
"""

from typing import Any, TypeVar

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

MetricT = TypeVar("MetricT", Counter, Gauge, Histogram)


def _get_or_create(
    metric_type: type[MetricT],
    name: str,
    doc: str,
    labels: list[str] | None = None,
    **kwargs: Any,
) -> MetricT:
    """
    Register a metric, or return the collector already registered under
    the same name.

    Args:
        metric_type: Counter, Gauge or Histogram.
        name: Metric name.
        doc: Metric documentation.
        labels: Optional list of label names.
        **kwargs: Extra constructor arguments (histogram buckets).
    """
    try:
        return metric_type(name, doc, labels or [], **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _get_or_create_counter(
    name: str, doc: str, labels: list[str] | None = None
) -> Counter:
    return _get_or_create(Counter, name, doc, labels)


def _get_or_create_gauge(
    name: str, doc: str, labels: list[str] | None = None
) -> Gauge:
    return _get_or_create(Gauge, name, doc, labels)


def _get_or_create_histogram(
    name: str,
    doc: str,
    labels: list[str] | None = None,
    buckets: tuple[float, ...] | None = None,
) -> Histogram:
    if buckets:
        return _get_or_create(Histogram, name, doc, labels, buckets=buckets)
    return _get_or_create(Histogram, name, doc, labels)
