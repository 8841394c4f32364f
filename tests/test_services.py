from typing import Any

import pytest
import requests

from core.custom_voices import CustomVoiceStore
from core.provider_service import ProviderService
from core.storage import JsonTable
from core.tts_service import TTSService, TTSServiceError
from core.voice_clone_service import VoiceCloneError, VoiceCloneService


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.calls: list[tuple[str, str, dict]] = []

    def _reply(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._reply("POST", url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._reply("GET", url, **kwargs)


# --- TTS ---

def test_generate_speech_posts_lowercased_provider():
    session = FakeSession(FakeResponse(200, {"audio_url": "https://x/a.mp3"}))
    tts = TTSService(api_key="k", base_url="https://api.test", session=session)

    assert tts.generate_speech("hello", "Doubao", "d1", 1.2) == "https://x/a.mp3"

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://api.test/302/tts/generate")
    assert kwargs["headers"]["Authorization"] == "Bearer k"
    assert kwargs["json"] == {"text": "hello", "provider": "doubao", "voice": "d1", "speed": 1.2}


def test_generate_speech_uses_hd_model_for_openai():
    session = FakeSession(FakeResponse(200, {"audio_url": "u"}))
    TTSService(api_key="k", session=session).generate_speech("hi", "OpenAI", "alloy")
    assert session.calls[0][2]["json"]["model"] == "tts-1-hd"


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(500, text="boom"),
        FakeResponse(200, {"data": {}}),
        requests.ConnectionError("offline"),
    ],
)
def test_generate_speech_failures_raise(response):
    tts = TTSService(api_key="k", session=FakeSession(response))
    with pytest.raises(TTSServiceError):
        tts.generate_speech("hi", "fish", "f1")


# --- providers ---

def test_fetch_providers_parses_response():
    payload = {
        "provider_list": [
            {"provider": "Azure", "req_params_info": {"voice_list": [{"voice": "zh-CN-X", "name": "X"}]}}
        ]
    }
    session = FakeSession(FakeResponse(200, payload))
    result = ProviderService(api_key="k", base_url="https://api.test", session=session).fetch_providers()

    assert result.provider_list[0].provider == "Azure"
    assert result.provider_list[0].req_params_info.voice_list[0].voice == "zh-CN-X"
    assert session.calls[0][1] == "https://api.test/302/tts/provider"


def test_fetch_providers_without_key_skips_request():
    session = FakeSession(FakeResponse(200, {}))
    assert ProviderService(api_key=None, session=session).fetch_providers() is None
    assert session.calls == []


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(401, text="unauthorized"),
        FakeResponse(200, ValueError("not json")),
        FakeResponse(200, {"provider_list": [{"no": "provider"}]}),
        requests.Timeout("slow"),
    ],
)
def test_fetch_providers_failures_return_none(response):
    assert ProviderService(api_key="k", session=FakeSession(response)).fetch_providers() is None


# --- voice cloning ---

FISH_MODEL = {
    "_id": "m1",
    "title": "Me",
    "type": "tts",
    "visibility": "unlist",
    "state": "trained",
    "created_at": "2025-01-01T00:00:00Z",
}


def test_clone_voice_uploads_recording_as_multipart():
    session = FakeSession(FakeResponse(200, dict(FISH_MODEL)))
    cloner = VoiceCloneService(api_key="k", base_url="https://api.test", session=session)

    voice = cloner.clone_voice(b"RIFF", "Me")

    assert (voice.id, voice.title, voice.created_at) == ("m1", "Me", None)
    assert voice.model_dump(by_alias=True)["state"] == "trained"
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://api.test/fish-audio/model")
    assert kwargs["data"] == {"visibility": "unlist", "type": "tts", "title": "Me", "train_mode": "fast"}
    assert kwargs["files"]["voices"][:2] == ("recording.wav", b"RIFF")


def test_clone_voice_without_key_or_audio_skips_request():
    session = FakeSession(FakeResponse(200, dict(FISH_MODEL)))
    with pytest.raises(VoiceCloneError):
        VoiceCloneService(api_key=None, session=session).clone_voice(b"RIFF", "Me")
    with pytest.raises(VoiceCloneError):
        VoiceCloneService(api_key="k", session=session).clone_voice(b"", "Me")
    assert session.calls == []


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(500, text="boom"),
        FakeResponse(200, ValueError("not json")),
        FakeResponse(200, {"title": "no id"}),
        requests.ConnectionError("offline"),
    ],
)
def test_clone_voice_failures_raise(response):
    with pytest.raises(VoiceCloneError):
        VoiceCloneService(api_key="k", session=FakeSession(response)).clone_voice(b"RIFF", "Me")


# --- custom voices ---

def test_custom_voice_store_round_trip(tmp_path):
    store = CustomVoiceStore(JsonTable(tmp_path / "cv.json", key="_id"))
    store.add({"_id": "a", "title": "First", "createdAt": 1})
    added = store.add({"_id": "b", "title": "Second", "visibility": "private"})

    assert added.created_at is not None
    assert [v.id for v in store.list()] == ["b", "a"]
    assert store.list()[0].model_dump(by_alias=True)["_id"] == "b"

    with pytest.raises(KeyError):
        store.add({"_id": "a", "title": "Again"})
    assert store.delete("a") is True
    assert [v.id for v in store.list()] == ["b"]
