"""
Speech generation flows: PK battles and the four generate-* batches.

Every flow synthesises all of its clips first and records the batch in the
HistoryStore only when each one succeeded, so a failed synthesis leaves no
partial record behind. TTS errors propagate to the caller.
"""
import logging
from typing import List, Optional, Tuple

from .catalog import VoiceCatalog
from .history import HistoryStore
from .labels import resolve_label
from .models import (
    HistoryRecord,
    MultipleTextsMultipleVoicesRequest,
    MultipleTextsSingleVoiceRequest,
    NewMultipleTextsMultipleVoicesRecord,
    NewMultipleTextsSingleVoiceRecord,
    NewPkRecord,
    NewSingleTextMultipleVoicesRecord,
    NewSingleTextSingleVoiceRecord,
    PkRequest,
    SingleTextMultipleVoicesRequest,
    SingleTextSingleVoiceRequest,
)
from .utils import random_sample_text

logger = logging.getLogger(__name__)

class GenerationError(ValueError):
    """The request names a malformed voice or leaves nothing to synthesise."""

def split_voice(compound: str) -> Tuple[str, str]:
    platform, sep, voice = compound.partition(":")
    if not (sep and platform and voice):
        raise GenerationError(f"Voice must look like '<platform>:<voice>', got {compound!r}")
    return platform, voice

class SpeechGenerator:
    def __init__(self, tts, catalog: VoiceCatalog, history: HistoryStore):
        self.tts = tts
        self.catalog = catalog
        self.history = history

    def pick_voice(
        self, platform: Optional[str] = None, voice: Optional[str] = None, exclude: str = ""
    ) -> Tuple[str, str]:
        """Use (platform, voice) as given, else draw a random voice, from *platform*'s group when one is named."""
        if platform and voice:
            return platform, voice
        picked = self.catalog.random_voice(exclude=exclude, platform=platform or None)
        if picked is None:
            raise GenerationError(f"No voices available on {platform}" if platform else "No voices available")
        return picked

    def _resolve(self, compound: Optional[str]) -> Tuple[str, str]:
        return split_voice(compound) if compound else self.pick_voice()

    def _speak(self, text: str, platform: str, voice: str, speed: float) -> str:
        return self.tts.generate_speech(text, platform, voice, speed)

    def _record(self, record) -> HistoryRecord:
        record_id = self.history.add(record)
        logger.info(f"Recorded {record.type} generation {record_id}")
        return self.history.get(record_id)

    # --- PK ---

    def pk(self, request: PkRequest) -> HistoryRecord:
        text = request.text or random_sample_text()
        left = self.pick_voice(request.left_platform, request.left_voice)
        right = self.pick_voice(request.right_platform, request.right_voice, exclude=f"{left[0]}:{left[1]}")

        sides = {}
        for side, (platform, voice) in (("left", left), ("right", right)):
            url = self._speak(text, platform, voice, request.speed)
            sides[side] = {"platform": platform, "voice": f"{platform}:{voice}", "text": text, "url": url}
        return self._record(NewPkRecord(voices=sides))

    # --- generate-* ---

    def single_text_single_voice(self, request: SingleTextSingleVoiceRequest) -> HistoryRecord:
        text = request.text or random_sample_text()
        platform, voice = self._resolve(request.voice)
        compound = f"{platform}:{voice}"
        url = self._speak(text, platform, voice, request.speed)
        return self._record(
            NewSingleTextSingleVoiceRecord(
                voices={
                    "voice": compound,
                    "text": text,
                    "url": url,
                    "platform": platform,
                    "voice_title": resolve_label(self.catalog.groups, compound),
                }
            )
        )

    def single_text_multiple_voices(self, request: SingleTextMultipleVoicesRequest) -> HistoryRecord:
        text = request.text or random_sample_text()
        clips = []
        for choice in request.voices:
            platform, voice = self._resolve(choice)
            url = self._speak(text, platform, voice, request.speed)
            clips.append({"voice": f"{platform}:{voice}", "url": url, "platform": platform})
        return self._record(NewSingleTextMultipleVoicesRecord(voices={"text": text, "voices": clips}))

    def multiple_texts_single_voice(self, request: MultipleTextsSingleVoiceRequest) -> HistoryRecord:
        texts = [t for t in request.texts if t.strip()]
        if not texts:
            raise GenerationError("At least one non-empty text is required")
        platform, voice = self._resolve(request.voice)
        urls: List[str] = [self._speak(text, platform, voice, request.speed) for text in texts]
        return self._record(
            NewMultipleTextsSingleVoiceRecord(
                voices={"voice": f"{platform}:{voice}", "platform": platform, "texts": texts, "urls": urls}
            )
        )

    def multiple_texts_multiple_voices(self, request: MultipleTextsMultipleVoicesRequest) -> HistoryRecord:
        pairs = []
        for choice in request.pairs:
            text = choice.text or random_sample_text()
            platform, voice = self._resolve(choice.voice)
            url = self._speak(text, platform, voice, request.speed)
            pairs.append({"text": text, "voice": f"{platform}:{voice}", "platform": platform, "url": url})
        return self._record(NewMultipleTextsMultipleVoicesRecord(voices={"pairs": pairs}))
