"""
Prometheus metrics.

Collectors are module-level so that creating several sinks (tests,
multiple breakers) never registers the same timeseries twice.
"""

from prometheus_client import Counter, Gauge, Histogram

NAMESPACE = "moviematch"

# Numeric encoding of breaker state for the gauge
STATE_VALUES = {"CLOSED": 0, "HALF_OPEN": 1, "OPEN": 2}

_breaker_calls = Counter(
    "circuit_breaker_calls_total",
    "Calls through a circuit breaker by outcome",
    ["service", "outcome"],
    namespace=NAMESPACE,
)
_breaker_latency = Histogram(
    "circuit_breaker_call_seconds",
    "Latency of calls through a circuit breaker",
    ["service"],
    namespace=NAMESPACE,
)
_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["service"],
    namespace=NAMESPACE,
)
_cache_lookups = Counter(
    "catalog_lookups_total",
    "Catalog lookups by the rung of the degrade ladder that answered",
    ["kind", "source"],
    namespace=NAMESPACE,
)
_votes = Counter(
    "votes_total",
    "Votes recorded",
    namespace=NAMESPACE,
)
_matches = Counter(
    "matches_total",
    "Rooms transitioned to MATCHED",
    namespace=NAMESPACE,
)
_events = Counter(
    "events_total",
    "Room events by type and publication outcome",
    ["event_type", "outcome"],
    namespace=NAMESPACE,
)


class MetricsSink:
    """Thin facade over the process-wide collectors."""

    def breaker_call(
        self, service: str, state: str, outcome: str, latency: float
    ) -> None:
        _breaker_calls.labels(service=service, outcome=outcome).inc()
        _breaker_latency.labels(service=service).observe(latency)
        _breaker_state.labels(service=service).set(STATE_VALUES.get(state, -1))

    def breaker_state(self, service: str, state: str) -> None:
        _breaker_state.labels(service=service).set(STATE_VALUES.get(state, -1))

    def catalog_lookup(self, kind: str, source: str) -> None:
        _cache_lookups.labels(kind=kind, source=source).inc()

    def vote_recorded(self) -> None:
        _votes.inc()

    def match_found(self) -> None:
        _matches.inc()

    def event(self, event_type: str, outcome: str) -> None:
        _events.labels(event_type=event_type, outcome=outcome).inc()


default_metrics = MetricsSink()
