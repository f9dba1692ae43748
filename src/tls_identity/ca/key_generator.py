"""RSA key pair generation for self-signed test identities."""

import logging
import time

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace

from tls_identity.domain.models import KeyPair
from tls_identity.errors import AlgorithmUnavailableError
from tls_identity.metrics import issuance_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class KeyPairGenerator:
    """Generates RSA key pairs of a fixed strength.

    Key material is random on every call; only the key size is fixed.
    """

    KEY_SIZE = 4096
    PUBLIC_EXPONENT = 65537

    def generate(self) -> KeyPair:
        """Generate a new RSA key pair.

        Raises:
            AlgorithmUnavailableError: If the backend has no RSA support.
        """
        with tracer.start_as_current_span("KeyPairGenerator.generate") as span:
            span.set_attribute("key_size", self.KEY_SIZE)
            start_time = time.time()

            try:
                private_key = rsa.generate_private_key(
                    public_exponent=self.PUBLIC_EXPONENT,
                    key_size=self.KEY_SIZE,
                )
            except UnsupportedAlgorithm as e:
                logger.error(
                    "key_generation_failed",
                    extra={"algorithm": "RSA", "key_size": self.KEY_SIZE, "error": str(e)},
                )
                raise AlgorithmUnavailableError(f"RSA key generation is unavailable: {e}") from e

            duration = time.time() - start_time
            issuance_metrics.record_key_generated(duration)

            logger.debug(
                "key_pair_generated",
                extra={"algorithm": f"RSA-{self.KEY_SIZE}", "duration_seconds": duration},
            )
            return KeyPair(private_key=private_key)
