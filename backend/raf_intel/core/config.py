"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "RAF Gap Intelligence"
    debug: bool = False

    # Data snapshot (members.json / claims.json)
    data_dir: str = "data"

    # Agent batch bounds
    agent_batch_limit: int = 1000
    upload_agent_batch_limit: int = 2000

    # API
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Optional narrative enrichment (OpenAI-compatible endpoint)
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    narrative_timeout_seconds: float = 15.0

    @property
    def narrative_enabled(self) -> bool:
        """Whether a credential for narrative enrichment is configured."""
        return bool(self.openai_api_key)


settings = Settings()
