import logging
from typing import Any, Dict, List, Union

from .history import now_ms
from .models import CustomVoice
from .storage import JsonTable

logger = logging.getLogger(__name__)

class CustomVoiceStore:
    """Cloned voices returned by the voice-clone API, keyed by their ``_id``."""

    def __init__(self, table: JsonTable):
        self.table = table

    def list(self) -> List[CustomVoice]:
        return [CustomVoice.model_validate(row) for row in self.table.order_by("createdAt", reverse=True)]

    def add(self, voice: Union[CustomVoice, Dict[str, Any]]) -> CustomVoice:
        if not isinstance(voice, CustomVoice):
            voice = CustomVoice.model_validate(voice)
        if voice.created_at is None:
            voice = voice.model_copy(update={"created_at": now_ms()})
        self.table.add(voice.model_dump(by_alias=True))
        logger.info(f"Saved custom voice {voice.id} ({voice.title})")
        return voice

    def delete(self, voice_id: str) -> bool:
        return self.table.delete(voice_id)
