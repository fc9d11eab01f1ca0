"""Application configuration using Pydantic Settings."""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database path settings."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    persons_db_path: str = "data/persons.db"
    edges_db_path: str = "data/relationships.db"

    def ensure_dirs(self) -> None:
        """Create parent directories for both databases."""
        for path in (self.persons_db_path, self.edges_db_path):
            Path(path).parent.mkdir(parents=True, exist_ok=True)


class GraphSettings(BaseSettings):
    """Relationship graph behaviour."""

    model_config = SettingsConfigDict(env_prefix="GRAPH_")

    # Commit a reconcile batch as one transaction instead of op-by-op
    atomic_batches: bool = False


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ApiSettings(BaseSettings):
    """HTTP API settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    user_header: str = "X-User-Id"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database: DatabaseSettings = DatabaseSettings()
    graph: GraphSettings = GraphSettings()
    logging: LoggingSettings = LoggingSettings()
    api: ApiSettings = ApiSettings()


settings = Settings()
