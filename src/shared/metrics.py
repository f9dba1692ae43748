from opentelemetry import metrics
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from prometheus_client import start_http_server


def setup_metrics(app_name: str, prometheus_port: int | None = None) -> MeterProvider:
    """Configure OpenTelemetry metrics.

    Metrics always go to the console. When ``prometheus_port`` is set, they
    are also served for scraping on that port.
    """

    resource = Resource.create({"service.name": app_name})

    readers: list[MetricReader] = [PeriodicExportingMetricReader(ConsoleMetricExporter())]

    if prometheus_port is not None:
        start_http_server(port=prometheus_port)
        readers.append(PrometheusMetricReader())

    provider = MeterProvider(resource=resource, metric_readers=readers)

    metrics.set_meter_provider(provider)
    return provider
