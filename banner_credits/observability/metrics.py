"""
Metrics Collection with Prometheus.

Exposes business and system metrics for monitoring.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

from banner_credits.config import settings


class GatewayMetrics:
    """
    Centralized metrics for the Banner Credits API.

    Covers:
    - HTTP requests (rate, duration, errors)
    - Generations (delivered / rejected / failed)
    - Refunds (success / failure)
    - Provider calls (latency, result)
    - Payment captures
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info(
            "banner_credits_service",
            "Service information",
        )
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
                "ledger_backend": settings.ledger_backend,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "banner_credits_http_requests_total",
            "Total HTTP requests",
            ["endpoint", "method", "status_code"],
        )

        self.http_request_duration_seconds = Histogram(
            "banner_credits_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["endpoint", "method"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
        )

        self.http_requests_in_progress = Gauge(
            "banner_credits_http_requests_in_progress",
            "HTTP requests currently in progress",
            ["endpoint", "method"],
        )

        # ====================================================================
        # Generation Metrics
        # ====================================================================
        self.generations_total = Counter(
            "banner_credits_generations_total",
            "Metered generations by terminal outcome",
            ["provider", "outcome"],
        )

        self.refunds_total = Counter(
            "banner_credits_refunds_total",
            "Compensating refunds after provider failures",
            ["success"],
        )

        # ====================================================================
        # Provider Metrics
        # ====================================================================
        self.provider_calls_total = Counter(
            "banner_credits_provider_calls_total",
            "Calls to the external generation provider",
            ["model", "result"],
        )

        self.provider_call_duration_seconds = Histogram(
            "banner_credits_provider_call_duration_seconds",
            "External generation call duration in seconds",
            ["model"],
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0),
        )

        # ====================================================================
        # Payment Metrics
        # ====================================================================
        self.payment_captures_total = Counter(
            "banner_credits_payment_captures_total",
            "Payment capture attempts by result",
            ["processor", "result"],
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.errors_total = Counter(
            "banner_credits_errors_total",
            "Total errors by type",
            ["error_type", "operation"],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_generation(self, provider: str, outcome: str) -> None:
        """Record a metered generation's terminal outcome."""
        self.generations_total.labels(provider=provider, outcome=outcome).inc()

    def record_refund(self, success: bool) -> None:
        """Record a compensating refund."""
        self.refunds_total.labels(success=str(success)).inc()

    def record_provider_call(self, model: str, result: str, duration: float) -> None:
        """Record one external provider call."""
        self.provider_calls_total.labels(model=model, result=result).inc()
        self.provider_call_duration_seconds.labels(model=model).observe(duration)

    def record_payment_capture(self, processor: str, result: str) -> None:
        """Record a payment capture attempt."""
        self.payment_captures_total.labels(processor=processor, result=result).inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = GatewayMetrics()
