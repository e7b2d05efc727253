"""Prometheus metrics for purchase outcomes, spend distribution and backend health"""

from decimal import Decimal
from prometheus_client import Counter, Histogram

# Purchase metrics
purchase_counter = Counter(
    "bigbsubz_purchase_total",
    "Cable purchase attempts by outcome",
    ["outcome"],  # success | failed | rejected
)

purchase_amount_counter = Counter(
    "bigbsubz_purchase_amount",
    "Successful purchases by package price bucket",
    ["bucket"],  # <=5k, 5k-15k, 15k-30k, 30k+
)

# Backend platform metrics
backend_failures_counter = Counter(
    "backend_failures_total",
    "Failed backend platform calls",
    ["operation"],
)

ledger_inconsistency_counter = Counter(
    "ledger_inconsistency_total",
    "Balances debited without a recorded transaction",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_purchase(outcome: str, amount: Decimal) -> None:
    """Record purchase metrics; only successful spend is bucketed"""
    purchase_counter.labels(outcome=outcome).inc()

    if outcome != "success":
        return

    if amount <= 5_000:
        bucket = "<=5k"
    elif amount <= 15_000:
        bucket = "5k-15k"
    elif amount <= 30_000:
        bucket = "15k-30k"
    else:
        bucket = "30k+"

    purchase_amount_counter.labels(bucket=bucket).inc()
