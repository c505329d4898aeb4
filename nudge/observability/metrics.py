"""Prometheus metrics for the notification engine."""

from prometheus_client import Counter, Gauge, Histogram

# Event metrics
EVENTS_HANDLED = Counter(
    "nudge_events_handled_total",
    "Total number of trigger events handled",
    labelnames=["trigger_event"],
)

EVENTS_DECLINED = Counter(
    "nudge_events_declined_total",
    "Events declined as a whole (outage or quiet hours)",
    labelnames=["trigger_event", "reason"],
)

RULES_MATCHED = Histogram(
    "nudge_rules_matched",
    "Number of rules whose conditions matched per event",
    labelnames=["trigger_event"],
    buckets=(0, 1, 2, 3, 5, 10, 20),
)

# Selection metrics
COOLDOWN_DENIED = Counter(
    "nudge_cooldown_denied_total",
    "Rules suppressed by an active cooldown",
    labelnames=["rule_id"],
)

# Rendering metrics
RENDER_FAILURES = Counter(
    "nudge_render_failures_total",
    "Dispatch plans skipped because rendering failed",
    labelnames=["template_id", "reason"],
)

# Dispatch metrics
DISPATCH_OUTCOMES = Counter(
    "nudge_dispatch_outcomes_total",
    "Channel hand-off outcomes",
    labelnames=["channel", "outcome"],
)

DISPATCH_LATENCY = Histogram(
    "nudge_dispatch_latency_seconds",
    "Channel hand-off latency in seconds",
    labelnames=["channel"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Delivery tracking metrics
DELIVERY_TRANSITIONS = Counter(
    "nudge_delivery_transitions_total",
    "Delivery status transitions by outcome",
    labelnames=["status", "outcome"],
)

# Catalog metrics
CATALOG_RULES = Gauge(
    "nudge_catalog_active_rules",
    "Number of active rules in the current catalog snapshot",
)

CATALOG_REJECTED = Gauge(
    "nudge_catalog_rejected_entries",
    "Rules and templates rejected at the last catalog load",
)
