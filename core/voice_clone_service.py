import logging

import requests
from pydantic import ValidationError

from .config import API_BASE_URL, API_KEY, CLONE_TIMEOUT
from .models import CustomVoice

logger = logging.getLogger(__name__)

class VoiceCloneError(ValueError):
    pass

class VoiceCloneService:
    """Trains a fish-audio voice model from a recording via the hosted API."""

    def __init__(self, api_key: str = API_KEY, base_url: str = API_BASE_URL, session=None):
        self.api_key = api_key
        self.base_url = base_url
        self.session = session or requests.Session()

    def clone_voice(
        self,
        audio: bytes,
        title: str,
        visibility: str = "unlist",
        voice_type: str = "tts",
        train_mode: str = "fast",
        filename: str = "recording.wav",
    ) -> CustomVoice:
        """
        Uploads *audio* and returns the new model as a CustomVoice.
        ``createdAt`` is left unset for the caller to stamp.
        """
        if not self.api_key:
            raise VoiceCloneError("API_KEY is not set; cannot clone voices.")
        if not audio:
            raise VoiceCloneError("No audio to clone from.")
        if not title:
            raise VoiceCloneError("A voice title is required.")

        url = f"{self.base_url}/fish-audio/model"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        data = {
            "visibility": visibility,
            "type": voice_type,
            "title": title,
            "train_mode": train_mode,
        }
        files = {"voices": (filename, audio, "audio/wav")}

        logger.info(f"Cloning voice '{title}' from {len(audio)} bytes of audio...")

        try:
            response = self.session.post(url, headers=headers, data=data, files=files, timeout=CLONE_TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"Voice clone request failed: {e}")
            raise VoiceCloneError(f"Voice clone request failed: {e}") from e

        if response.status_code != 200:
            error_msg = f"Voice Clone API Error: {response.status_code} - {response.text}"
            logger.error(error_msg)
            raise VoiceCloneError(error_msg)

        try:
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"unexpected response {payload!r}")
            # upstream created_at is an ISO string; createdAt is our local clone time
            payload.pop("created_at", None)
            payload.pop("createdAt", None)
            voice = CustomVoice.model_validate(payload)
        except (ValueError, ValidationError) as e:
            logger.error(f"Voice Clone Response Error: {e}")
            raise VoiceCloneError(f"Voice Clone Response Error: {e}") from e

        logger.info(f"Cloned voice {voice.id} ({voice.title})")
        return voice
