"""OpenTelemetry distributed tracing configuration.

Exporters: console, otlp (gRPC), or none. Jaeger is reachable through its
OTLP endpoint. The instance lives on app.state.telemetry.
"""

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from promptly_edge.core.config import Settings

logger = logging.getLogger(__name__)


class TelemetryConfig:
    """OpenTelemetry configuration for tracing.

    Supports FastAPI, SQLAlchemy, Redis, and logging instrumentation.
    Every instrument_* call is a no-op until setup_telemetry() has
    installed a tracer provider.
    """

    def __init__(
        self,
        service_name: str,
        service_version: str,
        enabled: bool = True,
        environment: str = "development",
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.enabled = enabled
        self.environment = environment
        self.tracer_provider: TracerProvider | None = None

    def setup_telemetry(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Initialize tracing and set the global tracer provider.

        Args:
            exporter_type: "console", "otlp", or "none".
            otlp_endpoint: OTLP gRPC endpoint (e.g. http://localhost:4317).
            sample_rate: Sampling rate 0.0-1.0.

        Returns:
            TracerProvider or None if disabled or setup failed.
        """
        if not self.enabled:
            logger.info("Telemetry disabled")
            return None
        try:
            resource = Resource(
                attributes={
                    SERVICE_NAME: self.service_name,
                    SERVICE_VERSION: self.service_version,
                    "deployment.environment": self.environment,
                }
            )
            provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(sample_rate))

            if exporter_type == "none":
                logger.info("Telemetry enabled but no exporter configured")
            else:
                if exporter_type == "otlp" and otlp_endpoint:
                    exporter = OTLPSpanExporter(
                        endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
                    )
                    logger.info("Using OTLP span exporter: %s", otlp_endpoint)
                else:
                    if exporter_type != "console":
                        logger.warning("Unknown exporter type '%s', using console", exporter_type)
                    exporter = ConsoleSpanExporter()
                provider.add_span_processor(BatchSpanProcessor(exporter))

            trace.set_tracer_provider(provider)
            self.tracer_provider = provider
            logger.info(
                "OpenTelemetry initialized: service=%s, version=%s, exporter=%s",
                self.service_name,
                self.service_version,
                exporter_type,
            )
            return provider
        except Exception as e:
            logger.exception("Failed to initialize telemetry: %s", e)
            return None

    def instrument_fastapi(self, app: FastAPI) -> None:
        """Instrument FastAPI (requests, duration, status, exceptions)."""
        if not self.tracer_provider:
            return
        try:
            FastAPIInstrumentor.instrument_app(
                app,
                tracer_provider=self.tracer_provider,
                excluded_urls="/v1/health",
            )
            logger.info("FastAPI instrumentation enabled")
        except Exception as e:
            logger.exception("Failed to instrument FastAPI: %s", e)

    def instrument_sqlalchemy(self, engine: AsyncEngine) -> None:
        """Instrument SQLAlchemy (queries, duration)."""
        if not self.tracer_provider:
            return
        try:
            SQLAlchemyInstrumentor().instrument(
                engine=engine.sync_engine,
                tracer_provider=self.tracer_provider,
                enable_commenter=True,
            )
            logger.info("SQLAlchemy instrumentation enabled")
        except Exception as e:
            logger.exception("Failed to instrument SQLAlchemy: %s", e)

    def instrument_redis(self) -> None:
        """Instrument the Redis client (commands, duration)."""
        if not self.tracer_provider:
            return
        try:
            RedisInstrumentor().instrument(tracer_provider=self.tracer_provider)
            logger.info("Redis instrumentation enabled")
        except Exception as e:
            logger.exception("Failed to instrument Redis: %s", e)

    def instrument_logging(self) -> None:
        """Add trace context (trace_id, span_id) to log records."""
        if not self.tracer_provider:
            return
        try:
            LoggingInstrumentor().instrument(tracer_provider=self.tracer_provider)
            logger.info("Logging instrumentation enabled")
        except Exception as e:
            logger.exception("Failed to instrument logging: %s", e)

    def shutdown(self) -> None:
        """Shutdown tracer provider and flush remaining spans."""
        if self.tracer_provider:
            try:
                self.tracer_provider.shutdown()
                logger.info("Telemetry shutdown complete")
            except Exception as e:
                logger.exception("Error during telemetry shutdown: %s", e)


def build_telemetry(settings: Settings) -> TelemetryConfig | None:
    """Create and set up telemetry from settings; None when disabled."""
    if not settings.telemetry_enabled:
        return None
    telemetry = TelemetryConfig(
        service_name=settings.app_name,
        service_version=settings.app_version,
        enabled=True,
        environment=settings.telemetry_environment,
    )
    telemetry.setup_telemetry(
        exporter_type=settings.telemetry_exporter,
        otlp_endpoint=settings.telemetry_otlp_endpoint,
        sample_rate=settings.telemetry_sample_rate,
    )
    telemetry.instrument_logging()
    return telemetry
