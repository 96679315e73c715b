"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary


REQUEST_COUNTER = Counter(
	"linkme_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"linkme_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

PROXIMITY_QUERIES = Counter(
	"linkme_proximity_queries_total",
	"Nearby proximity queries",
	["radius"],
)

PROXIMITY_RESULTS = Summary(
	"linkme_proximity_results_avg",
	"Nearby query result sizes",
)

PROXIMITY_DEGRADED = Counter(
	"linkme_proximity_degraded_total",
	"Nearby queries answered with an unavailable flag",
)

LOCATION_UPDATES = Counter(
	"linkme_location_updates_total",
	"Location upserts accepted",
)

RATE_LIMITED_EVENTS = Counter(
	"linkme_rate_limited_total",
	"Events dropped due to rate limiting",
	["kind"],
)

CONNECTION_REQUESTS = Counter(
	"linkme_connection_requests_total",
	"Connection requests by result",
	["result"],
)

CONNECTION_TRANSITIONS = Counter(
	"linkme_connection_transitions_total",
	"Connection status transitions by outcome",
	["decision", "outcome"],
)

MESSAGES_SENT = Counter(
	"linkme_messages_sent_total",
	"Messages appended to accepted connections",
)

MESSAGES_GATE_REJECTED = Counter(
	"linkme_messages_gate_rejected_total",
	"Message sends refused because the connection is not accepted",
)

AUDIT_FAILURES = Counter(
	"linkme_audit_failures_total",
	"Audit stream appends that failed",
	["stream"],
)

REDIS_UP = Gauge("linkme_redis_up", "Redis availability (1=up,0=down)")
REDIS_LATENCY = Summary("linkme_redis_latency_seconds", "Redis ping latency (seconds)")

STORE_UP = Gauge("linkme_store_up", "Store availability (1=up,0=down)")
STORE_LATENCY = Summary("linkme_store_latency_seconds", "Store ping latency (seconds)")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_proximity_query(radius: int) -> None:
	PROXIMITY_QUERIES.labels(radius=str(radius)).inc()


def observe_proximity_results(count: int) -> None:
	PROXIMITY_RESULTS.observe(count)


def inc_proximity_degraded() -> None:
	PROXIMITY_DEGRADED.inc()


def inc_location_update() -> None:
	LOCATION_UPDATES.inc()


def inc_rate_limited(kind: str) -> None:
	RATE_LIMITED_EVENTS.labels(kind=kind).inc()


def inc_connection_request(result: str) -> None:
	CONNECTION_REQUESTS.labels(result=result).inc()


def inc_connection_transition(decision: str, outcome: str) -> None:
	CONNECTION_TRANSITIONS.labels(decision=decision, outcome=outcome).inc()


def inc_message_sent() -> None:
	MESSAGES_SENT.inc()


def inc_message_gate_rejected() -> None:
	MESSAGES_GATE_REJECTED.inc()


def inc_audit_failure(stream: str) -> None:
	AUDIT_FAILURES.labels(stream=stream).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_store(ok: bool, *, latency_seconds: float | None = None) -> None:
	STORE_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		STORE_LATENCY.observe(latency_seconds)
