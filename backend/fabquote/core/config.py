from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Annotated, Any, ClassVar, Optional
import json
from pathlib import Path
import os


_QUOTE_STATUSES = ("DRAFT", "SENT", "ACCEPTED", "REJECTED", "EXPIRED")


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "FabQuote API"

    # JWT configuration (provide a fallback for local development)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'fabquote.db'}"

    # CORS origins
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]

    # Base frontend URL used when building public quote links
    FRONTEND_URL: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Quote listing
    QUOTE_PAGE_SIZE: int = 10
    QUOTE_MAX_PAGE_SIZE: int = 100

    # Appended to the title of a duplicated quote
    QUOTE_COPY_SUFFIX: str = " (Copy)"

    # Optional allow-list of status transitions, e.g.
    # {"DRAFT": ["SENT"], "SENT": ["ACCEPTED", "REJECTED", "EXPIRED"]}.
    # When unset every status is reachable from every other.
    QUOTE_STATUS_TRANSITIONS: Optional[dict[str, list[str]]] = None

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")),
        case_sensitive=True,
    )

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("FRONTEND_URL", mode="before")
    def strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @model_validator(mode="after")
    def normalize_transitions(self) -> "Settings":
        raw = self.QUOTE_STATUS_TRANSITIONS
        if raw is None:
            return self
        normalized: dict[str, list[str]] = {}
        for source, targets in raw.items():
            key = str(source).strip().upper()
            if key not in _QUOTE_STATUSES:
                raise ValueError(f"Unknown quote status in transitions: {source}")
            allowed = []
            for target in targets:
                name = str(target).strip().upper()
                if name not in _QUOTE_STATUSES:
                    raise ValueError(f"Unknown quote status in transitions: {target}")
                allowed.append(name)
            normalized[key] = allowed
        self.QUOTE_STATUS_TRANSITIONS = normalized
        return self


def load_settings() -> "Settings":
    return Settings()


settings = load_settings()
