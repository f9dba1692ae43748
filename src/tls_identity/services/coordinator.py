"""Orchestrates issuance of the server and client test identities.

The server identity must be issued first: its certificate is cached on the
coordinator and becomes the trusted entry of the client's trust store.

Reuse is keyed only on the presence of the certificate PEM file. A stale or
expired certificate found on disk is reused as-is.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from cryptography import x509
from opentelemetry import trace

from shared.config import Settings
from tls_identity.ca.certificate_issuer import CertificateIssuer
from tls_identity.ca.credential_store import CredentialStoreWriter
from tls_identity.ca.key_generator import KeyPairGenerator
from tls_identity.ca.pem import PemEncoder, read_certificate
from tls_identity.domain.models import ArtifactLayout, DistinguishedName
from tls_identity.domain.state_machine import IssuanceStateMachine
from tls_identity.domain.states import IdentityKind, IssuanceEvent, IssuanceState
from tls_identity.errors import InvalidStateError, IoFailureError, IssuanceError
from tls_identity.metrics import issuance_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_DEFAULTS = {name: field.default for name, field in Settings.model_fields.items()}

TRUSTED_CERTIFICATE_ALIAS = "cert"
PRIVATE_KEY_ALIAS = "privatekey"


class IssuanceCoordinator:
    """Issues (or reuses) the server identity, then the client identity.

    States:
        UNINITIALIZED -> SERVER_ISSUED -> CLIENT_ISSUED

    Not thread-safe; callers serialize access.
    """

    def __init__(
        self,
        base_directory: Path,
        server_dn: DistinguishedName | None = None,
        client_dn: DistinguishedName | None = None,
        key_store_password: str = _DEFAULTS["KEYSTORE_PASSWORD"],
        trust_store_password: str = _DEFAULTS["TRUSTSTORE_PASSWORD"],
        key_generator: KeyPairGenerator | None = None,
        issuer: CertificateIssuer | None = None,
        pem_encoder: PemEncoder | None = None,
        store_writer: CredentialStoreWriter | None = None,
    ) -> None:
        self.layout = ArtifactLayout(Path(base_directory))
        self.server_dn = server_dn or DistinguishedName.parse(_DEFAULTS["SERVER_DN"])
        self.client_dn = client_dn or DistinguishedName.parse(_DEFAULTS["CLIENT_DN"])
        self._key_store_password = key_store_password
        self._trust_store_password = trust_store_password

        self._key_generator = key_generator or KeyPairGenerator()
        self._issuer = issuer or CertificateIssuer()
        self._pem = pem_encoder or PemEncoder()
        self._stores = store_writer or CredentialStoreWriter()

        self._state_machine = IssuanceStateMachine(str(self.layout.base_directory))
        self._server_certificate: x509.Certificate | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "IssuanceCoordinator":
        """Build a coordinator from application settings."""
        return cls(
            base_directory=settings.SSL_DIRECTORY,
            server_dn=DistinguishedName.parse(settings.SERVER_DN),
            client_dn=DistinguishedName.parse(settings.CLIENT_DN),
            key_store_password=settings.KEYSTORE_PASSWORD,
            trust_store_password=settings.TRUSTSTORE_PASSWORD,
            issuer=CertificateIssuer(validity_days=settings.VALIDITY_DAYS),
        )

    @property
    def state(self) -> IssuanceState:
        return self._state_machine.state

    @property
    def server_certificate(self) -> x509.Certificate:
        """Get the cached server certificate. Raises if not yet issued."""
        if self._server_certificate is None:
            raise InvalidStateError(
                "Server identity not issued. Call issue_server_identity() first."
            )
        return self._server_certificate

    def issue_server_identity(self) -> x509.Certificate:
        """Issue the server certificate and key, or load an existing certificate.

        Returns:
            The cached server certificate.

        Raises:
            IssuanceError: If key generation, signing or writing fails.
        """
        with tracer.start_as_current_span("IssuanceCoordinator.issue_server_identity") as span:
            layout = self.layout

            if layout.base_directory.is_dir() and layout.server_certificate.is_file():
                certificate = read_certificate(layout.server_certificate)
                span.set_attribute("outcome", "reused")
                self._cache_server_certificate(certificate)
                self._log_issued(IdentityKind.SERVER, "reused", certificate)
                self._advance(IssuanceEvent.SERVER_IDENTITY_ISSUED)
                return certificate

            self._ensure_directory()

            key_pair = self._key_generator.generate()
            certificate = self._issuer.issue_self_signed(key_pair, self.server_dn)

            self._write_all(
                IdentityKind.SERVER,
                [
                    (
                        layout.server_certificate,
                        lambda p: self._pem.write_certificate(certificate, p),
                    ),
                    (
                        layout.server_private_key,
                        lambda p: self._pem.write_private_key(key_pair.private_key, p),
                    ),
                ],
            )

            span.set_attribute("outcome", "generated")
            self._cache_server_certificate(certificate)
            self._log_issued(IdentityKind.SERVER, "generated", certificate)
            self._advance(IssuanceEvent.SERVER_IDENTITY_ISSUED)
            return certificate

    def issue_client_identity(self) -> None:
        """Issue the client identity together with its trust and key stores.

        Raises:
            InvalidStateError: If the server identity has not been issued.
            IssuanceError: If key generation, signing or writing fails.
        """
        with tracer.start_as_current_span("IssuanceCoordinator.issue_client_identity") as span:
            if self.state == IssuanceState.UNINITIALIZED:
                logger.warning(
                    "client_issuance_before_server",
                    extra={"state": self.state.value},
                )
                raise InvalidStateError(
                    "Client identity requires the server identity. "
                    "Call issue_server_identity() first."
                )
            server_certificate = self.server_certificate
            layout = self.layout

            if layout.base_directory.is_dir() and layout.client_certificate.is_file():
                span.set_attribute("outcome", "reused")
                issuance_metrics.record_identity_issued(IdentityKind.CLIENT.value, "reused")
                logger.info(
                    "identity_reused",
                    extra={"identity": "client", "path": str(layout.client_certificate)},
                )
                self._advance(IssuanceEvent.CLIENT_IDENTITY_ISSUED)
                return

            key_pair = self._key_generator.generate()
            certificate = self._issuer.issue_self_signed(key_pair, self.client_dn)

            self._write_all(
                IdentityKind.CLIENT,
                [
                    (
                        layout.trust_store,
                        lambda p: self._stores.write_trust_store(
                            p,
                            self._trust_store_password,
                            TRUSTED_CERTIFICATE_ALIAS,
                            server_certificate,
                        ),
                    ),
                    (
                        layout.key_store,
                        lambda p: self._stores.write_key_store(
                            p,
                            self._key_store_password,
                            PRIVATE_KEY_ALIAS,
                            key_pair.private_key,
                            certificate,
                            certificate_alias=TRUSTED_CERTIFICATE_ALIAS,
                        ),
                    ),
                    (
                        layout.client_certificate,
                        lambda p: self._pem.write_certificate(certificate, p),
                    ),
                    (
                        layout.client_private_key,
                        lambda p: self._pem.write_private_key(key_pair.private_key, p),
                    ),
                ],
            )

            span.set_attribute("outcome", "generated")
            self._log_issued(IdentityKind.CLIENT, "generated", certificate)
            self._advance(IssuanceEvent.CLIENT_IDENTITY_ISSUED)

    def _ensure_directory(self) -> None:
        try:
            self.layout.base_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                "artifact_directory_create_failed",
                extra={"path": str(self.layout.base_directory), "error": str(e)},
            )
            raise IoFailureError(
                f"Failed to create {self.layout.base_directory}: {e}"
            ) from e

    def _write_all(
        self,
        identity: IdentityKind,
        writes: list[tuple[Path, Callable[[Path], None]]],
    ) -> None:
        """Run every write, removing this call's files if any write fails."""
        written: list[Path] = []
        try:
            for path, write in writes:
                write(path)
                written.append(path)
        except IssuanceError as e:
            logger.error(
                "identity_write_failed",
                extra={
                    "identity": identity.value,
                    "kind": e.kind.value,
                    "removed": [str(p) for p in written],
                },
            )
            for path in written:
                path.unlink(missing_ok=True)
            raise

    def _cache_server_certificate(self, certificate: x509.Certificate) -> None:
        self._server_certificate = certificate
        issuance_metrics.record_server_certificate(certificate.not_valid_after_utc.timestamp())

    def _advance(self, event: IssuanceEvent) -> None:
        # Repeated calls keep the state reached by the first one
        if self._state_machine.can_transition(event):
            self._state_machine.transition(event)

    def _log_issued(
        self, identity: IdentityKind, outcome: str, certificate: x509.Certificate
    ) -> None:
        issuance_metrics.record_identity_issued(identity.value, outcome)
        logger.info(
            f"identity_{outcome}",
            extra={
                "identity": identity.value,
                "subject": certificate.subject.rfc4514_string(),
                "not_after": certificate.not_valid_after_utc.isoformat(),
            },
        )
