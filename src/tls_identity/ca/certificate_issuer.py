"""Self-signed X.509 certificate issuance.

Builds certificates where issuer == subject and the signature is made with the
private key matching the embedded public key.
"""

import ipaddress
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from opentelemetry import trace

from tls_identity.domain.models import DistinguishedName, KeyPair
from tls_identity.errors import CertificateIssuanceFailedError
from tls_identity.metrics import issuance_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CertificateIssuer:
    """Issues self-signed certificates for loopback test services.

    Certificate attributes:
    - Issuer = Subject = the supplied distinguished name
    - Serial: 1 (certificates are never chained)
    - Validity: now - validity_days to now + validity_days
    - SubjectAlternativeName: IP 127.0.0.1 (non-critical)
    - Signature: SHA256 with RSA
    """

    SERIAL_NUMBER = 1
    DEFAULT_VALIDITY_DAYS = 30
    LOOPBACK_ADDRESS = ipaddress.IPv4Address("127.0.0.1")
    # cryptography refuses SHA1 for signatures
    SIGNATURE_HASH = hashes.SHA256

    def __init__(
        self,
        validity_days: int = DEFAULT_VALIDITY_DAYS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize issuer.

        Args:
            validity_days: Days to backdate notBefore and to forward-date notAfter.
            clock: Source of the current UTC time.
        """
        if validity_days <= 0:
            raise ValueError("validity_days must be positive")
        self._validity = timedelta(days=validity_days)
        self._clock = clock

    def issue_self_signed(
        self,
        key_pair: KeyPair,
        distinguished_name: DistinguishedName,
    ) -> x509.Certificate:
        """Build, sign and self-check a certificate for the given identity.

        Args:
            key_pair: Key pair whose public key is certified and whose private
                key signs the certificate.
            distinguished_name: Used as both issuer and subject.

        Returns:
            The signed certificate.

        Raises:
            CertificateIssuanceFailedError: If signing or the self-check fails.
        """
        with tracer.start_as_current_span("CertificateIssuer.issue_self_signed") as span:
            span.set_attribute("subject", str(distinguished_name))

            # X.509 time has second precision; truncate so the window is exact
            now = self._clock().replace(microsecond=0)
            name = distinguished_name.to_x509_name()

            try:
                certificate = (
                    x509.CertificateBuilder()
                    .subject_name(name)
                    .issuer_name(name)
                    .public_key(key_pair.public_key)
                    .serial_number(self.SERIAL_NUMBER)
                    .not_valid_before(now - self._validity)
                    .not_valid_after(now + self._validity)
                    .add_extension(
                        x509.SubjectAlternativeName([x509.IPAddress(self.LOOPBACK_ADDRESS)]),
                        critical=False,
                    )
                    .sign(key_pair.private_key, self.SIGNATURE_HASH())
                )
            except (ValueError, TypeError, UnsupportedAlgorithm) as e:
                logger.error(
                    "certificate_signing_failed",
                    extra={"subject": str(distinguished_name), "error": str(e)},
                )
                raise CertificateIssuanceFailedError(f"Failed to sign certificate: {e}") from e

            self._self_check(certificate, key_pair, now)

            issuance_metrics.record_certificate_issued()
            logger.info(
                "certificate_issued",
                extra={
                    "subject": str(distinguished_name),
                    "serial": certificate.serial_number,
                    "not_before": certificate.not_valid_before_utc.isoformat(),
                    "not_after": certificate.not_valid_after_utc.isoformat(),
                },
            )
            return certificate

    def _self_check(self, certificate: x509.Certificate, key_pair: KeyPair, now: datetime) -> None:
        """Verify the certificate against its own public key and validity window."""
        embedded_key = certificate.public_key()
        try:
            if embedded_key.public_numbers() != key_pair.public_key.public_numbers():
                raise CertificateIssuanceFailedError("Embedded public key does not match key pair")
            if certificate.issuer != certificate.subject:
                raise CertificateIssuanceFailedError("Issuer and subject differ")
            if not certificate.not_valid_before_utc <= now <= certificate.not_valid_after_utc:
                raise CertificateIssuanceFailedError("Issuance time is outside the validity window")

            embedded_key.verify(
                certificate.signature,
                certificate.tbs_certificate_bytes,
                padding.PKCS1v15(),
                certificate.signature_hash_algorithm,
            )
        except InvalidSignature as e:
            logger.error("certificate_self_check_failed", extra={"reason": "invalid_signature"})
            raise CertificateIssuanceFailedError("Certificate signature does not verify") from e
        except CertificateIssuanceFailedError as e:
            logger.error("certificate_self_check_failed", extra={"reason": str(e)})
            raise
