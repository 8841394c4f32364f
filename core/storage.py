import copy
import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

class StorageError(RuntimeError):
    pass

class JsonTable:
    """
    Keyed table of JSON records, held in memory and rewritten to a single
    JSON file on every mutation. ``path=None`` keeps it in memory only.

    Records go in and come out as copies, so callers can never mutate
    stored state behind the table's back.
    """

    def __init__(self, path: Optional[Path] = None, key: str = "id"):
        self.path = Path(path) if path is not None else None
        self.key = key
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self):
        if self.path is None or not self.path.exists():
            return
        try:
            rows = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(rows, list):
                raise ValueError(f"expected a JSON list, got {type(rows).__name__}")
        except (OSError, ValueError) as e:
            self._quarantine(e)
            return
        for row in rows:
            if isinstance(row, dict) and row.get(self.key) is not None:
                self._rows[str(row[self.key])] = row

    def _quarantine(self, error: Exception):
        """Move an unreadable file aside so the next write cannot clobber it."""
        backup = self.path.with_name(f"{self.path.name}.corrupt-{time.strftime('%Y%m%d-%H%M%S')}")
        try:
            os.replace(self.path, backup)
        except OSError as e:
            raise StorageError(f"Table {self.path} is unreadable ({error}) and could not be moved aside: {e}") from e
        logger.error(f"Failed to load table {self.path}: {error}. Moved it to {backup} and starting empty.")

    def _save(self, rows: Dict[str, Dict[str, Any]]):
        if self.path is not None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp = self.path.with_suffix(".tmp")
                tmp.write_text(json.dumps(list(rows.values()), indent=2, ensure_ascii=False), encoding="utf-8")
                os.replace(tmp, self.path)
            except (OSError, TypeError, ValueError) as e:
                raise StorageError(f"Failed to write table {self.path}: {e}") from e
        self._rows = rows

    # --- read ---

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        row = self._rows.get(str(key))
        return copy.deepcopy(row) if row is not None else None

    def count(self) -> int:
        return len(self._rows)

    def all(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._rows.values()]

    def order_by(self, field: str, reverse: bool = False) -> List[Dict[str, Any]]:
        """All rows sorted by *field*; rows with equal values keep insertion order."""
        rows = list(self._rows.values())
        if reverse:
            # reverse the whole stream, ties included, like walking an index backwards
            rows = sorted(rows, key=lambda r: r.get(field) or 0)[::-1]
        else:
            rows = sorted(rows, key=lambda r: r.get(field) or 0)
        return [copy.deepcopy(r) for r in rows]

    # --- write ---

    def add(self, row: Dict[str, Any]) -> str:
        key = row.get(self.key)
        if key is None:
            raise KeyError(f"Row has no '{self.key}'")
        key = str(key)
        if key in self._rows:
            raise KeyError(f"Key already exists: {key}")
        rows = dict(self._rows)
        rows[key] = copy.deepcopy(row)
        self._save(rows)
        return key

    def put(self, row: Dict[str, Any]) -> str:
        key = str(row[self.key])
        rows = dict(self._rows)
        rows[key] = copy.deepcopy(row)
        self._save(rows)
        return key

    def update(self, key: str, changes: Dict[str, Any]) -> bool:
        key = str(key)
        if key not in self._rows:
            return False
        rows = dict(self._rows)
        rows[key] = {**rows[key], **copy.deepcopy(changes)}
        self._save(rows)
        return True

    def delete(self, key: str) -> bool:
        key = str(key)
        if key not in self._rows:
            return False
        rows = dict(self._rows)
        del rows[key]
        self._save(rows)
        return True
