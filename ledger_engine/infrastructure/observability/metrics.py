"""Prometheus metrics for cache efficiency and installment activity"""

from prometheus_client import Counter, Histogram

# Cache metrics
cache_lookup_counter = Counter(
    "ledger_cache_lookups_total",
    "Aggregate cache lookups",
    ["cache", "result"],  # hit | miss
)

cache_compute_histogram = Histogram(
    "ledger_cache_compute_seconds",
    "Time spent computing values on cache misses",
    ["cache"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Installment metrics
plan_created_counter = Counter(
    "ledger_installment_plans_created_total",
    "Installment plans created",
    ["frequency"],  # weekly | biweekly | monthly | quarterly
)

installment_payment_counter = Counter(
    "ledger_installment_payments_total",
    "Installment payments recorded",
    ["outcome"],  # recorded | already_paid | not_found
)

overdue_installment_counter = Counter(
    "ledger_installments_marked_overdue_total",
    "Installments transitioned to overdue",
)


def record_cache_lookup(cache: str, hit: bool) -> None:
    cache_lookup_counter.labels(cache=cache, result="hit" if hit else "miss").inc()
