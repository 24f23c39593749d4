"""SecureVault configuration — loaded from environment / .env file."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="SECUREVAULT_", extra="ignore", frozen=True
    )

    env: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./securevault.db"

    # Credential encryption. Changing this key makes every stored token undecryptable.
    encryption_key: str = "credential-encryption-key-32chars"

    # Export staging
    export_dir: Path = Path("temp/exports")
    export_retention_seconds: int = Field(300, ge=1)
    export_password_length: int = Field(12, ge=8, le=64)

    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def expose_error_details(self) -> bool:
        return self.env != "production"


settings = Settings()
