"""
Prometheus-compatible metrics for the booking core.

Tracks:
- Bookings created (by business)
- Booking status changes (by from/to status)
- Reviews submitted and rating recomputations
- Authorization denials (by capability)
- Employee roster changes (by action)

Usage:
    from servicehub.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.increment_bookings_created()
    metrics.increment_status_changes("pending", "confirmed")

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from typing import Dict, Optional, Tuple
from threading import Lock


class MetricsCollector:
    """
    Prometheus-style counter collector.

    Thread-safe for concurrent increments.
    """

    HELP_TEXTS = {
        "bookings_created_total": "Total number of bookings created",
        "booking_status_changes_total": "Total number of booking status updates",
        "reviews_submitted_total": "Total number of booking reviews submitted",
        "authorization_denials_total": "Total number of denied business-scoped actions",
        "employee_changes_total": "Total number of employee roster changes",
        "favorite_changes_total": "Total number of favorite additions and removals",
    }

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        return (metric_name, tuple(sorted(labels.items())))

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: int = 1):
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    # ===== Booking Metrics =====

    def increment_bookings_created(self, amount: int = 1):
        self._increment("bookings_created_total", {}, amount)

    def increment_status_changes(self, from_status: str, to_status: str, amount: int = 1):
        """
        Increment booking status change counter.

        Same-state updates are counted too; they are accepted as no-ops.
        """
        labels = {"from_status": from_status.lower(), "to_status": to_status.lower()}
        self._increment("booking_status_changes_total", labels, amount)

    def increment_reviews(self, outcome: str = "accepted", amount: int = 1):
        self._increment("reviews_submitted_total", {"outcome": outcome.lower()}, amount)

    # ===== Authorization / Roster Metrics =====

    def increment_authorization_denials(self, capability: Optional[str] = None, amount: int = 1):
        labels = {"capability": (capability or "any").lower()}
        self._increment("authorization_denials_total", labels, amount)

    def increment_employee_changes(self, action: str, amount: int = 1):
        self._increment("employee_changes_total", {"action": action.lower()}, amount)

    def increment_favorite_changes(self, action: str, amount: int = 1):
        self._increment("favorite_changes_total", {"action": action.lower()}, amount)

    # ===== Export =====

    def export_prometheus(self) -> str:
        """
        Export all metrics in Prometheus text format.

        Returns:
            Prometheus-compatible text output
        """
        output_lines = []

        # Group counters by metric name
        metrics_by_name: Dict[str, list] = {}
        with self._lock:
            for (metric_name, labels_tuple), value in self._counters.items():
                metrics_by_name.setdefault(metric_name, []).append((dict(labels_tuple), value))

        for metric_name in sorted(metrics_by_name.keys()):
            help_text = self.HELP_TEXTS.get(metric_name, "Counter metric")
            output_lines.append(f"# HELP {metric_name} {help_text}")
            output_lines.append(f"# TYPE {metric_name} counter")

            for labels_dict, value in sorted(metrics_by_name[metric_name], key=lambda x: str(x[0])):
                if labels_dict:
                    labels_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels_dict.items())])
                    output_lines.append(f"{metric_name}{{{labels_str}}} {value}")
                else:
                    output_lines.append(f"{metric_name} {value}")

            output_lines.append("")  # Blank line between metrics

        return "\n".join(output_lines)

    def get_counter_value(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> int:
        """Get current value of a specific counter."""
        key = self._get_counter_key(metric_name, labels or {})
        with self._lock:
            return self._counters.get(key, 0)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: Optional[MetricsCollector] = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector singleton."""
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
