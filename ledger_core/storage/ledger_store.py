from __future__ import annotations

import glob
import json
import logging
import shutil
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError

from ledger_core.models.entry import LedgerEntry

logger = logging.getLogger(__name__)


class LedgerStore:
    """
    JSON key-value store holding the whole list of ledger entries.
    - load() / save() always work on the complete list
    - rotating backups (backup_enabled, backup_keep)
    - no write when content is unchanged
    - unreadable file -> copied to .corrupt.json, logged, empty list
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self._lock = threading.Lock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    # ---------------- low level I/O ---------------- #

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Failed to load ledger data from %s: %s", self.filepath, e)
            self._keep_corrupt_copy()
            return []
        if not isinstance(data, list):
            logger.error("Ledger data in %s is not a list, starting empty", self.filepath)
            self._keep_corrupt_copy()
            return []
        return data

    def _keep_corrupt_copy(self) -> None:
        backup = self.filepath.with_suffix(".corrupt.json")
        try:
            shutil.copy2(self.filepath, backup)
        except OSError as e:
            logger.warning("Could not keep a copy of corrupt file %s: %s", self.filepath, e)

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # keep the most recent ones
        for old in files[: max(0, len(files) - self.backup_keep)]:
            try:
                Path(old).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove old backup %s: %s", old, e)

    def _write_raw(self, data: Iterable[Dict[str, Any]]) -> bool:
        with self._lock:
            new_dump = json.dumps(list(data), ensure_ascii=False, indent=2)

            # identical content -> nothing to do
            if self.filepath.exists():
                try:
                    if self.filepath.read_text(encoding="utf-8") == new_dump:
                        return False
                except (OSError, UnicodeDecodeError):
                    pass  # unreadable current file is simply overwritten

            if self.backup_enabled and self.filepath.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
                backup = self.filepath.with_suffix(f".{ts}.bak.json")
                try:
                    shutil.copy2(self.filepath, backup)
                except OSError as e:
                    logger.warning("Backup of %s failed: %s", self.filepath, e)
                self._rotate_backups()

            with self.filepath.open("w", encoding="utf-8") as f:
                f.write(new_dump)
            return True

    # ---------------- API ---------------- #

    def load(self) -> List[LedgerEntry]:
        out: List[LedgerEntry] = []
        for d in self._read_raw():
            try:
                out.append(LedgerEntry.model_validate(d))
            except ValidationError as e:
                # skip the bad row, keep the rest of the ledger usable
                ident = d.get("id") if isinstance(d, dict) else d
                logger.warning("Skipping invalid ledger entry %r: %s", ident, e)
        logger.debug("Loaded %d ledger entries from %s", len(out), self.filepath)
        return out

    def save(self, entries: Iterable[LedgerEntry]) -> bool:
        return self._write_raw(e.to_json_dict() for e in entries)
