"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Serial Reader"
    debug: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    frontend_port: int = 5173

    # Database
    database_url: str = "sqlite+aiosqlite:///./serial_reader.db"

    # Object storage (uploaded covers and chapter images)
    storage_dir: Path = Path(__file__).parent.parent.parent / "data" / "storage"
    storage_bucket: str = "novels"
    public_base_url: str = "http://localhost:8000"
    storage_max_retries: int = 3

    # Upload limits
    max_upload_size_mb: int = 100  # Maximum upload size in MB

    # Ingestion
    min_chapter_length: int = 100  # Fragments this short or shorter are dropped
    preview_length: int = 200  # Characters of chapter content echoed back

    # CORS - dynamically built based on frontend_port
    cors_origins: list[str] = []

    # Authentication
    # JSON mapping of API token -> role, e.g. API_TOKENS='{"s3cret": "admin"}'
    # Only tokens with the "admin" role may ingest EPUBs.
    api_tokens: dict[str, str] = {}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Build CORS origins based on frontend port
        if not self.cors_origins:
            self.cors_origins = [
                f"http://localhost:{self.frontend_port}",
                f"http://127.0.0.1:{self.frontend_port}",
            ]


settings = Settings()

# Ensure directories exist
settings.storage_dir.mkdir(parents=True, exist_ok=True)
