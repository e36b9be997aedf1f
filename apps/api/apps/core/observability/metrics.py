"""
Metrics instrumentation (Prometheus).
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """
    Central metrics registry for the clinic API.

    Provides typed access to all application metrics.
    """

    def __init__(self):
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        return Counter(name, description, labels or [])

    def _create_histogram(self, name, description, labels=None, buckets=None):
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets)
        return Histogram(name, description, labels or [])

    def _setup_metrics(self):
        # ===================================================================
        # Appointment lifecycle
        # ===================================================================
        self.appointment_status_transitions_total = self._create_counter(
            'appointment_status_transitions_total',
            'Appointment status transitions',
            ['from_status', 'to_status', 'result']
        )

        self.appointment_status_rejections_total = self._create_counter(
            'appointment_status_rejections_total',
            'Rejected appointment status updates',
            ['code']
        )

        self.appointment_status_update_duration_seconds = self._create_histogram(
            'appointment_status_update_duration_seconds',
            'Duration of the appointment status unit of work',
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
        )

        # ===================================================================
        # Treatment plan cascade
        # ===================================================================
        self.treatment_plan_item_sync_total = self._create_counter(
            'treatment_plan_item_sync_total',
            'Plan item updates driven by appointment status',
            ['appointment_status', 'result']
        )

        self.treatment_plan_autocomplete_total = self._create_counter(
            'treatment_plan_autocomplete_total',
            'Phases and plans auto-completed',
            ['level']  # phase | plan
        )

        self.treatment_plan_rollup_failures_total = self._create_counter(
            'treatment_plan_rollup_failures_total',
            'Phase/plan completion rollups that failed and were skipped'
        )

        # ===================================================================
        # Patient booking policy
        # ===================================================================
        self.patient_booking_blocks_total = self._create_counter(
            'patient_booking_blocks_total',
            'Patients blocked from booking',
            ['reason']
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.appointment_status_update_duration_seconds)
            def update_appointment_status(...):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()
