"""
History of generation and PK events.

Records are stored as plain dicts in a JsonTable keyed by ``id`` and parsed
into the ``HistoryRecord`` union on the way out. ``add`` lets storage errors
propagate; every other mutation is best-effort and reports failure through
a ``MutationResult`` instead of raising.

The store assumes a single writer: two ``delete_sub_item`` calls racing on
the same record can lose one of the deletes.
"""
import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ValidationError

from .models import (
    PK,
    HistoryPage,
    HistoryType,
    HistoryRecord,
    MultipleTextsMultipleVoices,
    MultipleTextsSingleVoice,
    SingleTextMultipleVoices,
    history_adapter,
    new_history_adapter,
)
from .storage import JsonTable

logger = logging.getLogger(__name__)

HistoryKind = Literal["all", "pk", "generation"]

# Set once by add; update() may not touch them
IMMUTABLE_FIELDS = ("id", "created_at", "type")


@dataclass
class MutationResult:
    ok: bool
    error: Optional[Exception] = None
    removed_record: bool = False


def now_ms() -> int:
    return int(time.time() * 1000)


def _without(items: List[Any], index: int) -> Optional[List[Any]]:
    """Copy of *items* minus *index*, or None when nothing would be left."""
    if not 0 <= index < len(items):
        raise IndexError(f"Sub-item index {index} out of range (0..{len(items) - 1})")
    if len(items) == 1:
        return None
    return items[:index] + items[index + 1:]


class HistoryStore:
    def __init__(self, table: JsonTable, clock: Optional[Callable[[], int]] = None):
        self.table = table
        self._clock = clock or now_ms
        self._subscribers: List[Callable[[], None]] = []

    # --- change notification ---

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run *callback* after every successful mutation. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self):
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception as e:
                logger.error(f"History subscriber failed: {e}")

    # --- read ---

    def _parse(self, row: Dict[str, Any]) -> Optional[HistoryRecord]:
        try:
            return history_adapter.validate_python(row)
        except ValidationError as e:
            logger.warning(f"Skipping malformed history record {row.get('id')}: {e}")
            return None

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        row = self.table.get(record_id)
        return self._parse(row) if row is not None else None

    def _ordered(self, kind: HistoryKind = "all") -> List[HistoryRecord]:
        if kind not in ("all", "pk", "generation"):
            raise ValueError(f"Unknown history kind: {kind}")
        records = []
        for row in self.table.order_by("created_at", reverse=True):
            if kind == "pk" and row.get("type") != PK:
                continue
            if kind == "generation" and row.get("type") == PK:
                continue
            record = self._parse(row)
            if record is not None:
                records.append(record)
        return records

    def list_page(self, page: int = 1, page_size: int = 10, kind: HistoryKind = "all") -> HistoryPage:
        """Newest-first page of records, optionally only PK or only generation records."""
        if page < 1 or page_size < 1:
            raise ValueError(f"page and page_size must be >= 1 (got {page}, {page_size})")
        records = self._ordered(kind)
        offset = (page - 1) * page_size
        total = len(records)
        return HistoryPage(
            items=records[offset:offset + page_size],
            total=total,
            total_pages=math.ceil(total / page_size),
            current_page=page,
        )

    def pk_records(self) -> List[HistoryRecord]:
        return self._ordered("pk")

    # --- write ---

    def add(self, record: Union[BaseModel, Dict[str, Any]]) -> str:
        """Persist a new record and return its id. Validation and storage errors propagate."""
        data = record.model_dump() if isinstance(record, BaseModel) else dict(record)
        new = new_history_adapter.validate_python(data)
        record_id = str(uuid.uuid4())
        row = {**new.model_dump(), "id": record_id, "created_at": self._clock()}
        self.table.add(row)
        logger.info(f"Added {new.type} history record {record_id}")
        self._notify()
        return record_id

    def update(self, record_id: str, fields: Dict[str, Any]) -> MutationResult:
        """Shallow-merge *fields* into a record. A missing id is a no-op."""
        try:
            changes = {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS}
            if len(changes) != len(fields):
                logger.warning(f"Ignoring immutable fields in update of {record_id}")
            row = self.table.get(record_id)
            if row is None:
                return MutationResult(ok=True)
            # only PK records carry a winner
            if row.get("type") != PK and "winner" in changes:
                logger.warning(f"Ignoring winner in update of {row.get('type')} record {record_id}")
                changes.pop("winner")
            history_adapter.validate_python({**row, **changes})
            self.table.update(record_id, changes)
        except Exception as e:
            logger.error(f"Failed to update history record {record_id}: {e}")
            return MutationResult(ok=False, error=e)
        self._notify()
        return MutationResult(ok=True)

    def delete(self, record_id: str) -> MutationResult:
        try:
            removed = self.table.delete(record_id)
        except Exception as e:
            logger.error(f"Failed to delete history record {record_id}: {e}")
            return MutationResult(ok=False, error=e)
        if removed:
            self._notify()
        return MutationResult(ok=True, removed_record=removed)

    def delete_sub_item(self, record_id: str, index: int, record_type: HistoryType) -> MutationResult:
        """
        Remove one clip from a composite record.

        Removing the last clip removes the record; single-clip record types
        are always removed whole. On any failure the record is left as it was.
        """
        try:
            record = self.get(record_id)
            if record is None:
                raise KeyError(f"History record not found: {record_id}")
            if record.type != record_type:
                raise ValueError(f"Record {record_id} is {record.type}, not {record_type}")

            voices = record.voices
            remaining = None
            if isinstance(voices, SingleTextMultipleVoices):
                clips = _without(voices.voices, index)
                if clips is not None:
                    remaining = voices.model_copy(update={"voices": clips})
            elif isinstance(voices, MultipleTextsSingleVoice):
                texts = _without(voices.texts, index)
                urls = _without(voices.urls, index)
                if texts is not None:
                    remaining = voices.model_copy(update={"texts": texts, "urls": urls})
            elif isinstance(voices, MultipleTextsMultipleVoices):
                pairs = _without(voices.pairs, index)
                if pairs is not None:
                    remaining = voices.model_copy(update={"pairs": pairs})

            if remaining is None:
                self.table.delete(record_id)
            else:
                self.table.update(record_id, {"voices": remaining.model_dump()})
        except Exception as e:
            logger.error(f"Failed to delete item {index} of history record {record_id}: {e}")
            return MutationResult(ok=False, error=e)
        self._notify()
        return MutationResult(ok=True, removed_record=remaining is None)
