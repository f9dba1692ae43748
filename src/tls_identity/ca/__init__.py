"""Certificate issuance building blocks.

This module provides:
- RSA key pair generation
- Self-signed X.509 certificate issuance
- PEM and JKS encoding of the issued material
"""

from tls_identity.ca.certificate_issuer import CertificateIssuer
from tls_identity.ca.credential_store import CredentialStoreWriter
from tls_identity.ca.key_generator import KeyPairGenerator
from tls_identity.ca.pem import PemEncoder, read_certificate

__all__ = [
    "CertificateIssuer",
    "CredentialStoreWriter",
    "KeyPairGenerator",
    "PemEncoder",
    "read_certificate",
]
