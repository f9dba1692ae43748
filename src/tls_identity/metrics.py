"""OpenTelemetry metrics for the issuance module."""

from collections.abc import Iterator

from opentelemetry import metrics

meter = metrics.get_meter("tls_identity")

# Identity counters
identities_issued_total = meter.create_counter(
    name="tls_identity_identities_issued_total",
    description="Total identities issued or reused",
    unit="1",
)

certificates_issued_total = meter.create_counter(
    name="tls_identity_certificates_issued_total",
    description="Total self-signed certificates issued",
    unit="1",
)

# Key generation histogram
key_generation_duration = meter.create_histogram(
    name="tls_identity_key_generation_duration_seconds",
    description="RSA key pair generation duration in seconds",
    unit="s",
)

# Artifact counters
credential_stores_written_total = meter.create_counter(
    name="tls_identity_credential_stores_written_total",
    description="Total credential stores written",
    unit="1",
)

pem_files_written_total = meter.create_counter(
    name="tls_identity_pem_files_written_total",
    description="Total PEM files written",
    unit="1",
)

# Server certificate expiry gauge, reported once the server identity is known
_server_certificate_not_after: float | None = None


def _get_server_certificate_not_after(
    options: metrics.CallbackOptions,
) -> Iterator[metrics.Observation]:
    """Callback to report the server certificate expiry as a unix timestamp."""
    if _server_certificate_not_after is not None:
        yield metrics.Observation(_server_certificate_not_after, {})


server_certificate_expiry_gauge = meter.create_observable_gauge(
    name="tls_identity_server_certificate_not_after_seconds",
    description="Expiry of the cached server certificate (unix time)",
    unit="s",
    callbacks=[_get_server_certificate_not_after],
)


class IssuanceMetrics:
    """Facade for issuance metrics with proper labels."""

    def record_identity_issued(self, identity: str, outcome: str) -> None:
        """Record identity issuance. Labels: identity=server|client, outcome=generated|reused"""
        identities_issued_total.add(1, {"identity": identity, "outcome": outcome})

    def record_certificate_issued(self) -> None:
        certificates_issued_total.add(1)

    def record_key_generated(self, duration_seconds: float) -> None:
        key_generation_duration.record(duration_seconds)

    def record_credential_store_written(self, store: str) -> None:
        """Record credential store write. Labels: store=key_store|trust_store"""
        credential_stores_written_total.add(1, {"store": store})

    def record_pem_written(self, kind: str) -> None:
        """Record PEM file write. Labels: kind=certificate|private_key"""
        pem_files_written_total.add(1, {"kind": kind})

    def record_server_certificate(self, not_after_timestamp: float) -> None:
        global _server_certificate_not_after
        _server_certificate_not_after = not_after_timestamp


# Singleton instance
issuance_metrics = IssuanceMetrics()
