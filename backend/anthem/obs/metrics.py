"""Central registry for Prometheus metrics used by the users store layer."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

STORE_CALLS = Counter(
	"anthem_store_calls_total",
	"Attribute store calls by operation and outcome",
	["operation", "outcome"],
)

STORE_LATENCY = Histogram(
	"anthem_store_call_duration_seconds",
	"Attribute store call latency in seconds",
	["operation"],
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

USER_UPDATES = Counter(
	"anthem_user_updates_total",
	"User profile patches executed",
	["outcome"],
)

CHAT_MEMBERSHIP_ADDS = Counter(
	"anthem_chat_membership_adds_total",
	"Per-user chat id additions from batch membership updates",
	["result"],
)


def observe_store_call(operation: str, outcome: str, elapsed_seconds: float) -> None:
	STORE_CALLS.labels(operation=operation, outcome=outcome).inc()
	STORE_LATENCY.labels(operation=operation).observe(elapsed_seconds)


def inc_user_update(outcome: str) -> None:
	USER_UPDATES.labels(outcome=outcome).inc()


def inc_chat_membership_add(result: str, count: int = 1) -> None:
	if count <= 0:
		return
	CHAT_MEMBERSHIP_ADDS.labels(result=result).inc(count)


__all__ = [
	"STORE_CALLS",
	"STORE_LATENCY",
	"USER_UPDATES",
	"CHAT_MEMBERSHIP_ADDS",
	"observe_store_call",
	"inc_user_update",
	"inc_chat_membership_add",
]
