"""Command line entry point: issue the server and client test identities."""

import logging

from opentelemetry import trace
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from shared.config import Settings, settings
from shared.logging import setup_logging
from shared.metrics import setup_metrics
from tls_identity.errors import IssuanceError
from tls_identity.services.coordinator import IssuanceCoordinator

logger = logging.getLogger(__name__)


def setup_tracing(app_name: str) -> TracerProvider:
    resource = Resource.create({"service.name": app_name})
    provider = TracerProvider(resource=resource)

    # Export traces to console
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider


def issue_identities(config: Settings) -> IssuanceCoordinator:
    """Issue (or reuse) both identities and return the coordinator holding them."""
    coordinator = IssuanceCoordinator.from_settings(config)
    coordinator.issue_server_identity()
    coordinator.issue_client_identity()

    layout = coordinator.layout
    logger.info(
        "identities_ready",
        extra={
            "server_certificate": str(layout.server_certificate),
            "client_certificate": str(layout.client_certificate),
            "key_store": str(layout.key_store),
            "trust_store": str(layout.trust_store),
        },
    )
    return coordinator


def main() -> int:
    logger_provider = setup_logging()
    tracer_provider = setup_tracing(settings.APP_NAME)
    meter_provider = setup_metrics(settings.APP_NAME, settings.METRICS_PORT)
    LoggingInstrumentor().instrument(set_logging_format=False)

    try:
        issue_identities(settings)
    except IssuanceError as e:
        logger.error("issuance_failed", extra={"kind": e.kind.value, "error": str(e)})
        return 1
    finally:
        # Flush batched exporters before the process exits
        tracer_provider.shutdown()
        meter_provider.shutdown()
        logger_provider.shutdown()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
