"""PEM encoding of certificates and private keys.

Files are written as a single base64 line between the marker lines, with no
trailing newline:

    -----BEGIN CERTIFICATE-----
    <base64 DER>
    -----END CERTIFICATE-----
"""

import base64
import logging
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tls_identity.errors import EncodingFailedError, IoFailureError
from tls_identity.metrics import issuance_metrics

logger = logging.getLogger(__name__)

CERTIFICATE_LABEL = "CERTIFICATE"
PRIVATE_KEY_LABEL = "PRIVATE KEY"


def encode_pem(label: str, der: bytes) -> str:
    """Wrap DER bytes in PEM marker lines."""
    body = base64.b64encode(der).decode("ascii")
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----"


def read_certificate(path: Path) -> x509.Certificate:
    """Load the certificate from a PEM file.

    Raises:
        IoFailureError: If the file cannot be read.
        EncodingFailedError: If the content is not a PEM certificate.
    """
    try:
        pem = path.read_bytes()
    except OSError as e:
        logger.error("pem_read_failed", extra={"path": str(path), "error": str(e)})
        raise IoFailureError(f"Failed to read {path}: {e}") from e

    try:
        return x509.load_pem_x509_certificate(pem)
    except ValueError as e:
        logger.error("pem_decode_failed", extra={"path": str(path), "error": str(e)})
        raise EncodingFailedError(f"{path} does not contain a valid certificate: {e}") from e


class PemEncoder:
    """Writes certificates and PKCS#8 private keys as PEM files."""

    def write_certificate(self, certificate: x509.Certificate, path: Path) -> None:
        try:
            der = certificate.public_bytes(serialization.Encoding.DER)
        except ValueError as e:
            raise EncodingFailedError(f"Failed to DER-encode certificate: {e}") from e

        self._write(path, encode_pem(CERTIFICATE_LABEL, der))
        issuance_metrics.record_pem_written("certificate")

    def write_private_key(self, key: rsa.RSAPrivateKey, path: Path) -> None:
        try:
            der = key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        except (ValueError, TypeError) as e:
            raise EncodingFailedError(f"Failed to DER-encode private key: {e}") from e

        self._write(path, encode_pem(PRIVATE_KEY_LABEL, der))
        issuance_metrics.record_pem_written("private_key")

    def _write(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="ascii")
        except OSError as e:
            logger.error("pem_write_failed", extra={"path": str(path), "error": str(e)})
            raise IoFailureError(f"Failed to write {path}: {e}") from e

        logger.debug("pem_written", extra={"path": str(path)})
