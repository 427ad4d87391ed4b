"""Prometheus metrics for the work order lifecycle"""

import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# Lifecycle metrics
work_order_transitions_total = Counter(
    'work_order_transitions_total',
    'Total number of applied status transitions',
    ['from_status', 'to_status']
)

work_order_guard_rejections_total = Counter(
    'work_order_guard_rejections_total',
    'Transitions blocked by an unmet guard before reaching the engine',
    ['reason']
)

work_order_noop_transitions_total = Counter(
    'work_order_noop_transitions_total',
    'Transitions rejected because the target equals the current status',
    ['status']
)

# Store metrics
store_operation_failures_total = Counter(
    'store_operation_failures_total',
    'Total number of failed realtime store or blob storage operations',
    ['operation']
)

store_operation_duration_seconds = Histogram(
    'store_operation_duration_seconds',
    'Time spent on realtime store operations',
    ['operation'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

partial_failures_total = Counter(
    'partial_failures_total',
    'Multi-step operations that completed their first step but not the rest',
    ['operation']
)

# Photo metrics
photo_uploads_total = Counter(
    'photo_uploads_total',
    'Total number of photo uploads',
    ['status']
)

photo_deletes_total = Counter(
    'photo_deletes_total',
    'Total number of photo deletions',
    ['status']
)


class MetricsCollector:
    """Thin recording facade so services never touch metric objects directly"""

    def record_transition(self, from_status: str, to_status: str):
        """Record an applied transition"""
        work_order_transitions_total.labels(
            from_status=from_status or "none",
            to_status=to_status
        ).inc()

    def record_guard_rejection(self, reason: str):
        """Record a guard rejection"""
        work_order_guard_rejections_total.labels(reason=reason).inc()

    def record_noop(self, status: str):
        """Record a no-op transition attempt"""
        work_order_noop_transitions_total.labels(status=status).inc()

    def record_store_failure(self, operation: str):
        """Record a failed store operation"""
        store_operation_failures_total.labels(operation=operation).inc()

    def record_store_duration(self, operation: str, duration_seconds: float):
        """Record store operation latency"""
        store_operation_duration_seconds.labels(operation=operation).observe(duration_seconds)

    def record_partial_failure(self, operation: str):
        """Record a partial failure"""
        partial_failures_total.labels(operation=operation).inc()
        logger.debug(f"Recorded partial failure for {operation}")

    def record_photo_upload(self, status: str):
        """Record a photo upload outcome (success | failed | orphaned)"""
        photo_uploads_total.labels(status=status).inc()

    def record_photo_delete(self, status: str):
        """Record a photo delete outcome (success | failed | dangling)"""
        photo_deletes_total.labels(status=status).inc()


# Global metrics collector instance
metrics_collector = MetricsCollector()
