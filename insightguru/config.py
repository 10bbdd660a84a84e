from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Backend API
    api_base_url: str = "https://fingenie-backend.vercel.app"
    request_timeout: float = 60.0

    # Local storage (stands in for browser localStorage)
    storage_path: str = "~/.insightguru/storage.db"

    # Conversation
    history_window: int = 10
    max_question_length: int = 4000
    preview_row_limit: int = 200

    # Result cache
    cache_key_prefix: str = "fg_cache_"
    scope_cache_by_dataset: bool = True

    # Shareable chat link, carries ?sid=
    app_url: str = "http://localhost:8080/chat"

    log_level: str = "INFO"
    log_file: str = ""  # empty: stderr

    @property
    def storage_dsn(self) -> str:
        path = Path(self.storage_path).expanduser()
        return f"sqlite+aiosqlite:///{path}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "INSIGHTGURU_"}


settings = Settings()
