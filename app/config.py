"""Boardmate configuration, loaded from environment / .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BOARDMATE_", extra="ignore")

    env: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./boardmate.db"
    cors_origins: list[str] = ["*"]

    # Board snapshots written by the canvas client (<board_id>.png)
    images_dir: Path = Path("temp/images")

    # Language model provider
    llm_provider: str = "groq"  # openai | groq | anthropic
    llm_model: str = ""
    llm_base_url: str = ""
    llm_api_key: str = ""
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.2
    llm_timeout: float = 60.0  # bounds a whole orchestration run

    # Tool orchestration
    max_tool_iterations: int = 10
    tool_iteration_delay: float = 0.05

    # Realtime delivery
    stream_live_chunks: bool = False
    chunk_send_delay: float = 0.05
    client_queue_size: int = 256
    chat_history_limit: int = 20

    @property
    def resolved_llm_model(self) -> str:
        if self.llm_model:
            return self.llm_model
        return _DEFAULT_MODELS.get(self.llm_provider, "")

    @property
    def resolved_llm_base_url(self) -> str | None:
        if self.llm_base_url:
            return self.llm_base_url
        if self.llm_provider == "groq":
            return "https://api.groq.com/openai/v1"
        return None


_DEFAULT_MODELS = {
    "openai": "gpt-4.1-mini",
    "groq": "meta-llama/llama-4-scout-17b-16e-instruct",
    "anthropic": "claude-sonnet-4-5",
}

settings = Settings()
