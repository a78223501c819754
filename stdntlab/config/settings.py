from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Literal


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Supabase Storage
    storage_bucket: str = "StdntLAB"
    max_file_size_bytes: int = 5 * 1024 * 1024  # 5MB per file
    signed_url_expiry_seconds: int = 3600

    # Quiz generation (Anthropic)
    anthropic_api_key: Optional[str] = None
    quiz_model: str = "claude-sonnet-4-20250514"
    quiz_max_tokens: int = 4096

    # Group matching
    recommendation_limit: int = 6
    quick_match_limit: int = 3
    quick_match_candidate_limit: int = 10
    match_strategy: Literal["weighted", "overlap"] = "weighted"

    # Todos: whose completion a group-todo toggle records (creator | caller)
    todo_toggle_acting_user: Literal["creator", "caller"] = "creator"

    # Per-user resource cache
    cache_ttl_seconds: int = 60

    # App
    app_name: str = "stdntlab-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
