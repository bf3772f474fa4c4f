"""Configuration contracts."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class QuestCoreConfig(BaseModel):
    base_url: str
    auth: str = "env"
    token: str | None = None
    timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=0, le=10)
    poll_interval: float = Field(default=2.0, ge=0)
    max_poll_attempts: int = Field(default=30, ge=1)
    max_days_ahead: int = Field(default=1, ge=1, le=7)
    snapshot_path: Path = Path("quest-store.json")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_auth_token(self) -> QuestCoreConfig:
        token = (self.token or "").strip()
        if self.auth == "token":
            if not token:
                raise ValueError("token auth requires a non-empty token")
            return self
        if token:
            raise ValueError("token must be unset when auth is not 'token'")
        if self.auth != "env":
            raise ValueError("auth must be one of: env, token")
        return self

    @model_validator(mode="after")
    def validate_base_url(self) -> QuestCoreConfig:
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return self
