from __future__ import annotations  # AI connection settings record

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from config.settings import Settings, settings as default_settings
from llm_gateway import AiCredentials

from .migrate import migrate
from .sqlite import get_conn


class AiSettingsStore:  # Single-row settings record implementing the gateway ConfigProvider
    def __init__(self, path: Union[str, Path], *, seed: Optional[Settings] = None) -> None:
        self._path = path
        self._seed = seed or default_settings
        migrate(self._path)
        self._ensure_row()

    def _ensure_row(self) -> None:  # Seed the record from environment settings once
        now = datetime.utcnow().isoformat(timespec="seconds")
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO ai_settings (id, api_key, model_name, site_url, site_name, updated_at)
                VALUES (1, ?, ?, ?, ?, ?)
                """,
                (
                    self._seed.OPENROUTER_API_KEY,
                    self._seed.DEFAULT_MODEL,
                    self._seed.SITE_URL,
                    self._seed.SITE_NAME,
                    now,
                ),
            )

    def get_credential_and_model(self) -> AiCredentials:  # Read the current record
        with get_conn(self._path) as conn:
            row = conn.execute(
                "SELECT api_key, model_name, site_url, site_name FROM ai_settings WHERE id = 1"
            ).fetchone()
        if row is None:
            return AiCredentials()
        return AiCredentials(
            api_key=row["api_key"] or "",
            model_name=row["model_name"] or "",
            referer_url=row["site_url"] or "",
            site_name=row["site_name"] or "",
        )

    def set_model_name(self, name: str) -> None:  # Persist a model correction
        self._update("model_name = ?", (name,))

    def update_ai_settings(self, *, api_key: Optional[str] = None, model_name: Optional[str] = None) -> None:
        if api_key is not None:
            self._update("api_key = ?", (api_key,))
        if model_name is not None:
            self._update("model_name = ?", (model_name,))

    def _update(self, assignment: str, params: tuple) -> None:
        now = datetime.utcnow().isoformat(timespec="seconds")
        with get_conn(self._path) as conn:
            conn.execute(
                f"UPDATE ai_settings SET {assignment}, updated_at = ? WHERE id = 1",
                (*params, now),
            )


__all__ = ["AiSettingsStore"]
