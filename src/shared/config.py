from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    APP_NAME: str = "tls-identity-fixtures"
    LOG_LEVEL: str = "INFO"

    # Artifacts
    SSL_DIRECTORY: Path = Path("target/ssl")

    # Identities (issuer == subject, comma-separated RDNs)
    SERVER_DN: str = "C=AU, O=Local Test Services, OU=Server Certificate, CN=localhost"
    CLIENT_DN: str = "C=AU, O=Local Test Services, OU=Client Certificate, CN=localhost"

    # Days notBefore is backdated and notAfter is forward-dated
    VALIDITY_DAYS: int = Field(default=30, ge=1, le=365)

    # Credential stores (test-only literals shared with the consuming TLS runtime)
    KEYSTORE_PASSWORD: str = "password"  # noqa: S105
    TRUSTSTORE_PASSWORD: str = "password"  # noqa: S105

    # Metrics (Prometheus endpoint disabled when unset)
    METRICS_PORT: Optional[int] = None


settings = Settings()
