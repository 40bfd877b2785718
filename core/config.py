"""
Application settings
"""
import json

from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Annotated, Optional
from pydantic import model_validator


class DocumentStoreSettings(BaseModel):
    backend: str = "firestore"  # firestore, memory
    # Firestore service account: raw JSON content or a path to the key file
    service_account_json: Optional[str] = None
    service_account_path: Optional[str] = None
    project_id: Optional[str] = None
    orders_collection: str = "orders"
    users_collection: str = "users"


class Settings(BaseSettings):
    """Project settings"""

    PROJECT_NAME: str = Field(default="Pesapal Checkout Backend")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)

    # Frontend origin: payer redirect target and CORS origin
    APP_BASE_URL: str = Field(default="http://localhost:3000")
    # Externally reachable URL of this backend, used for the IPN callback
    PUBLIC_API_URL: Optional[str] = Field(default=None)
    API_PREFIX: str = Field(default="/api")

    document_store: DocumentStoreSettings = Field(default_factory=DocumentStoreSettings)

    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(default=["http://localhost:3000", "http://localhost:5173"])

    # Request body logging
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_document_store(self):
        store = self.document_store
        backend = (store.backend or "").lower()
        if backend not in {"firestore", "memory"}:
            raise ValueError(
                f"DOCUMENT_STORE__BACKEND must be 'firestore' or 'memory', got '{store.backend}'"
            )
        if backend == "firestore" and not (store.service_account_json or store.service_account_path):
            raise ValueError(
                "Firestore credentials are not configured. Set DOCUMENT_STORE__SERVICE_ACCOUNT_JSON "
                "(service account key JSON content) or DOCUMENT_STORE__SERVICE_ACCOUNT_PATH in the "
                "environment or .env"
            )
        return self

    @field_validator("APP_BASE_URL", "PUBLIC_API_URL")
    @classmethod
    def _strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """Accept a JSON array string or a comma separated string."""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                try:
                    arr = json.loads(s)
                except ValueError:
                    arr = None
                if isinstance(arr, list):
                    return arr
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v

    @property
    def payment_redirect_url(self) -> str:
        """Where the payer lands after the hosted checkout."""
        return f"{self.APP_BASE_URL}/#/pesapal-callback"

    @property
    def payment_notification_url(self) -> str:
        """Server-to-server notification (IPN) target."""
        base = self.PUBLIC_API_URL or f"{self.APP_BASE_URL}{self.API_PREFIX}"
        return f"{base}/pesapal/callback"

    @property
    def cors_origins(self) -> list[str]:
        origins = list(self.CORS_ORIGINS)
        if self.APP_BASE_URL not in origins:
            origins.append(self.APP_BASE_URL)
        return origins


settings = Settings()
