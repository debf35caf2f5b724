from pydantic_settings import BaseSettings, SettingsConfigDict

from src.configs import (
    AccountServiceSettings,
    LookupSettings,
    PostgresSettings,
    PublisherSettings,
    RabbitSettings,
    ReferenceDataSettings,
)


class ProcessorSettings(BaseSettings):
    rabbit: RabbitSettings
    postgres: PostgresSettings | None = None
    reference_data: ReferenceDataSettings = ReferenceDataSettings()
    account_service: AccountServiceSettings = AccountServiceSettings()
    lookup: LookupSettings = LookupSettings()
    publisher: PublisherSettings = PublisherSettings()

    SQLALCHEMY_DATABASE_URI: str | None = None
    RUN_MIGRATIONS: bool = True
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
        env_nested_delimiter="__",
    )

    @property
    def database_uri(self) -> str:
        if self.SQLALCHEMY_DATABASE_URI:
            return ensure_async_dsn(self.SQLALCHEMY_DATABASE_URI)
        if self.postgres is None:
            raise ValueError("Either SQLALCHEMY_DATABASE_URI or postgres settings must be configured")
        return self.postgres.async_dsn


def ensure_async_dsn(dsn: str) -> str:
    if dsn.startswith("postgresql://"):
        return dsn.replace("postgresql://", "postgresql+asyncpg://", 1)
    if dsn.startswith("sqlite://"):
        return dsn.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return dsn
