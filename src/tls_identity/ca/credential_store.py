"""Java KeyStore (JKS) credential stores for TLS client runtimes.

Stores are always written from scratch; an existing file at the target path
is replaced, never merged.
"""

import logging
from pathlib import Path

import jks
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tls_identity.errors import StoreWriteFailedError
from tls_identity.metrics import issuance_metrics

logger = logging.getLogger(__name__)


class CredentialStoreWriter:
    """Builds password-protected JKS trust stores and key stores."""

    STORE_TYPE = "jks"

    def write_trust_store(
        self,
        path: Path,
        password: str,
        alias: str,
        certificate: x509.Certificate,
    ) -> None:
        """Write a store holding ``certificate`` as a trusted entry.

        Raises:
            StoreWriteFailedError: If the store cannot be built or written.
        """
        try:
            entry = jks.TrustedCertEntry.new(alias, _der(certificate))
            self._save(path, password, [entry])
        except StoreWriteFailedError:
            raise
        except Exception as e:
            logger.error(
                "credential_store_write_failed",
                extra={"store": "trust_store", "path": str(path), "error": str(e)},
            )
            raise StoreWriteFailedError(f"Failed to write trust store {path}: {e}") from e

        issuance_metrics.record_credential_store_written("trust_store")
        logger.info("trust_store_written", extra={"path": str(path), "alias": alias})

    def write_key_store(
        self,
        path: Path,
        password: str,
        alias: str,
        private_key: rsa.RSAPrivateKey,
        certificate: x509.Certificate,
        certificate_alias: str | None = None,
    ) -> None:
        """Write a store holding a private key whose chain is ``[certificate]``.

        Args:
            path: Target file, overwritten if present.
            password: Protects both the store and the private key entry.
            alias: Alias of the private key entry.
            private_key: Key to store (PKCS#8 encoded).
            certificate: Sole certificate of the key's chain.
            certificate_alias: If given, also store ``certificate`` as a trusted
                entry under this alias.

        Raises:
            StoreWriteFailedError: If the store cannot be built or written.
        """
        try:
            key_der = private_key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
            cert_der = _der(certificate)

            key_entry = jks.PrivateKeyEntry.new(alias, [cert_der], key_der, "pkcs8")
            key_entry.encrypt(password)
            entries: list = [key_entry]
            if certificate_alias is not None:
                entries.append(jks.TrustedCertEntry.new(certificate_alias, cert_der))

            self._save(path, password, entries)
        except StoreWriteFailedError:
            raise
        except Exception as e:
            logger.error(
                "credential_store_write_failed",
                extra={"store": "key_store", "path": str(path), "error": str(e)},
            )
            raise StoreWriteFailedError(f"Failed to write key store {path}: {e}") from e

        issuance_metrics.record_credential_store_written("key_store")
        logger.info("key_store_written", extra={"path": str(path), "alias": alias})

    def _save(self, path: Path, password: str, entries: list) -> None:
        store = jks.KeyStore.new(self.STORE_TYPE, entries)
        data = store.saves(password)
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.error(
                "credential_store_write_failed",
                extra={"path": str(path), "error": str(e)},
            )
            raise StoreWriteFailedError(f"Failed to write {path}: {e}") from e


def _der(certificate: x509.Certificate) -> bytes:
    return certificate.public_bytes(serialization.Encoding.DER)
