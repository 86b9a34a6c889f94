from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    vault_dir: Path
    vault_name: str
    meili_url: str | None
    meili_api_key: str | None
    meili_index: str
    meili_task_timeout_s: float
    cors_origins: list[str]
    api_debug_log: bool


def load_settings() -> Settings:
    vault_dir = Path(os.environ.get("VAULT_DIR", "./vault")).resolve()
    vault_name = os.environ.get("VAULT_NAME", "main")
    meili_url = os.environ.get("MEILI_URL") or None
    meili_api_key = os.environ.get("MEILI_API_KEY") or None
    meili_index = os.environ.get("MEILI_INDEX", "notes")
    meili_task_timeout_s = float(os.environ.get("MEILI_TASK_TIMEOUT_S", "60"))
    cors_origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    return Settings(
        vault_dir=vault_dir,
        vault_name=vault_name,
        meili_url=meili_url,
        meili_api_key=meili_api_key,
        meili_index=meili_index,
        meili_task_timeout_s=meili_task_timeout_s,
        cors_origins=cors_origins,
        api_debug_log=api_debug_log,
    )
