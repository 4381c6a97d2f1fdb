from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    # "sqlite" = base embebida local, "postgres" = servidor relacional
    DB_BACKEND: str = 'sqlite'
    DATABASE_URL: Optional[str] = None
    SQLITE_PATH: str = './invoice_generator.db'

    POSTGRES_USER: str = 'invoice_user'
    POSTGRES_PASSWORD: str = 'invoice_pass'
    POSTGRES_DB: str = 'invoice_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432

    # Ledger
    # Rechazar la anulación de una transacción que no es la más reciente del cliente
    STRICT_VOID_ORDER: bool = False
    MONEY_DECIMAL_PLACES: int = 2

    # Pagination
    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 1000

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_BACKEND == "postgres":
            return (
                f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )
        return f"sqlite:///{self.SQLITE_PATH}"

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DB_BACKEND", mode="before")
    @classmethod
    def parse_backend(cls, v):
        value = str(v).lower().strip('"').strip("'")
        if value in ("postgresql", "pg"):
            value = "postgres"
        if value not in ("sqlite", "postgres"):
            raise ValueError("DB_BACKEND debe ser 'sqlite' o 'postgres'")
        return value

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("STRICT_VOID_ORDER", mode="before")
    @classmethod
    def parse_strict_void(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

settings = Settings()
