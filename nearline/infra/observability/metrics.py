from prometheus_client import Counter, Gauge, Histogram

# Low-cardinality labels only: operation is flush/stage/remove, never a request id
REQUESTS = Counter(
    "nearline_requests_total",
    "Total nearline requests by outcome",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "nearline_request_duration_seconds",
    "Time from task start to reported outcome in seconds",
    ["operation"],
)

IN_FLIGHT = Gauge(
    "nearline_tasks_in_flight",
    "Tasks registered and not yet reported",
)
