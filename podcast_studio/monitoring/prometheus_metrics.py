"""
Prometheus metrics for the scheduling core.

Every ``@BaseService.measure_operation`` call lands here as a duration sample
and an outcome count; failures are also counted by exception type. Metrics
live on a private registry that an embedding application can expose with
``PrometheusMetrics.get_metrics()``.
"""

from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "podcast_studio_service_operation_duration_seconds",
    "Scheduling service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "podcast_studio_service_operations_total",
    "Scheduling service operations by outcome",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "podcast_studio_errors_total",
    "Failed scheduling service operations by exception type",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Static facade over the module registry."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record one measured call.

        Args:
            service: Service class name (e.g. 'BookingLifecycleManager')
            operation: Measured operation (e.g. 'confirm_reservation')
            duration: Wall time in seconds
            status: 'success' or 'error'
            error_type: Exception class name when status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Text exposition of the registry."""
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
