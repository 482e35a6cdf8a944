from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "eduportal_http_requests_total",
    "HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "eduportal_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path", "status"],
)
REQUEST_ERRORS = Counter(
    "eduportal_http_request_errors_total",
    "HTTP 5xx responses",
    ["method", "path", "status"],
)
