from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# --- Base paths ---
ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.environ.get("TYRE_LEDGER_DATA_DIR") or ROOT_DIR / "data")
EXPORTS_DIR = ROOT_DIR / "exports"

LEDGER_JSON = DATA_DIR / "ledger_entries.json"
SETTINGS_JSON = DATA_DIR / "settings.json"


class Settings(BaseModel):
    business_name: str = "Hindustan Wheelz"
    due_days: int = Field(default=30, ge=0)
    backup_enabled: bool = True
    backup_keep: int = Field(default=5, ge=0)
    log_level: str = "INFO"


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    p = Path(path) if path else SETTINGS_JSON
    if not p.exists():
        return Settings()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
        return Settings(**(raw if isinstance(raw, dict) else {}))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Unreadable settings file %s (%s), using defaults", p, e)
        return Settings()
