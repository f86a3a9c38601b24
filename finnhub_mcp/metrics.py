"""
Prometheus metrics for the FinnHub MCP server.

Tracks tool invocations, provider calls and circuit breaker state.
"""

from prometheus_client import Counter, Gauge, Histogram

# Tool metrics
tool_invocations_total = Counter(
    "finnhub_mcp_tool_invocations_total",
    "Total tool invocations",
    ["tool", "outcome"],
)

tool_invocation_duration_seconds = Histogram(
    "finnhub_mcp_tool_invocation_duration_seconds",
    "Tool invocation duration in seconds",
    ["tool"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

search_results_per_query = Histogram(
    "finnhub_mcp_search_results_per_query",
    "Number of symbols returned per search",
    buckets=(0, 1, 5, 10, 25, 50, 100),
)

# Provider metrics
provider_calls_total = Counter(
    "finnhub_mcp_provider_calls_total",
    "Total calls to the FinnHub API",
    ["endpoint", "status"],
)

provider_call_duration_seconds = Histogram(
    "finnhub_mcp_provider_call_duration_seconds",
    "FinnHub API call duration in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Circuit breaker state: 0 closed, 1 half-open, 2 open
circuit_breaker_state = Gauge(
    "finnhub_mcp_circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["name"],
)


def record_tool_invocation(tool: str, outcome: str, duration_seconds: float) -> None:
    """Record one tool invocation."""
    tool_invocations_total.labels(tool=tool, outcome=outcome).inc()
    tool_invocation_duration_seconds.labels(tool=tool).observe(duration_seconds)


def record_provider_call(endpoint: str, status: str, duration_seconds: float) -> None:
    """Record one logical call to the provider."""
    provider_calls_total.labels(endpoint=endpoint, status=status).inc()
    provider_call_duration_seconds.labels(endpoint=endpoint).observe(duration_seconds)
