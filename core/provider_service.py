import logging
from typing import Optional

import requests
from pydantic import ValidationError

from .config import API_BASE_URL, API_KEY, REQUEST_TIMEOUT
from .models import ProviderListResponse

logger = logging.getLogger(__name__)

class ProviderService:
    """Fetches voice metadata for every provider from the hosted API."""

    def __init__(self, api_key: str = API_KEY, base_url: str = API_BASE_URL, session=None):
        self.api_key = api_key
        self.base_url = base_url
        self.session = session or requests.Session()

    def fetch_providers(self) -> Optional[ProviderListResponse]:
        if not self.api_key:
            logger.warning("API_KEY is not set; skipping provider fetch.")
            return None

        url = f"{self.base_url}/302/tts/provider"
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = self.session.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
            if response.status_code != 200:
                logger.error(f"Provider API Error: {response.status_code} - {response.text}")
                return None
            result = ProviderListResponse.model_validate(response.json())
        except (requests.RequestException, ValueError, ValidationError) as e:
            logger.error(f"Failed to fetch TTS providers: {e}")
            return None

        logger.info(f"Fetched {len(result.provider_list)} TTS providers")
        return result
