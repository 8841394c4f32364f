import logging
import requests
from .config import API_BASE_URL, API_KEY, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

class TTSServiceError(ValueError):
    pass

class TTSService:
    def __init__(self, api_key: str = API_KEY, base_url: str = API_BASE_URL, session=None):
        self.api_key = api_key
        self.base_url = base_url
        self.session = session or requests.Session()
        if not self.api_key:
            logger.warning("API_KEY (or TTS_API_KEY) is not set. TTS generation will fail.")

    def generate_speech(self, text: str, platform: str, voice: str, speed: float = 1.0) -> str:
        """
        Synthesises *text* with one provider voice via the hosted API.
        Returns the audio URL reported by the API.
        """
        provider = platform.lower()
        url = f"{self.base_url}/302/tts/generate"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        data = {
            "text": text,
            "provider": provider,
            "voice": voice,
            "speed": speed,
        }
        if provider == "openai":
            data["model"] = "tts-1-hd"

        logger.info(f"Generating TTS with {provider}:{voice}...")

        try:
            response = self.session.post(url, headers=headers, json=data, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"TTS request failed for {provider}:{voice}: {e}")
            raise TTSServiceError(f"TTS request failed: {e}") from e

        if response.status_code != 200:
            error_msg = f"TTS API Error: {response.status_code} - {response.text}"
            logger.error(error_msg)
            raise TTSServiceError(error_msg)

        res_json = response.json()
        audio_url = res_json.get("audio_url") if isinstance(res_json, dict) else None
        if not audio_url:
            error_msg = f"TTS Response Error: {res_json}"
            logger.error(error_msg)
            raise TTSServiceError(error_msg)
        return audio_url
