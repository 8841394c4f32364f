import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Body, FastAPI, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from core.catalog import VoiceCatalog
from core.config import CUSTOM_VOICES_PATH, HISTORY_PATH, HOST, PAGE_SIZE, PORT, UI_LOCALE
from core.custom_voices import CustomVoiceStore
from core.generation import GenerationError, SpeechGenerator
from core.history import HistoryStore
from core.labels import resolve_label
from core.leaderboard import Leaderboard
from core.models import (
    PK,
    CustomVoice,
    MultipleTextsMultipleVoicesRequest,
    MultipleTextsSingleVoiceRequest,
    PkRequest,
    SingleTextMultipleVoicesRequest,
    SingleTextSingleVoiceRequest,
    WinnerUpdate,
)
from core.provider_service import ProviderService
from core.storage import JsonTable
from core.tts_service import TTSService, TTSServiceError
from core.utils import generate_download_filename
from core.voice_clone_service import VoiceCloneError, VoiceCloneService

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("VoiceArena")

history_store = HistoryStore(JsonTable(HISTORY_PATH))
custom_voice_store = CustomVoiceStore(JsonTable(CUSTOM_VOICES_PATH, key="_id"))
catalog = VoiceCatalog(locale=UI_LOCALE)
catalog.refresh_custom_voices(custom_voice_store.list())
leaderboard = Leaderboard(history_store)
provider_service = ProviderService()
tts_service = TTSService()
voice_clone_service = VoiceCloneService()


def refresh_catalog():
    providers = provider_service.fetch_providers()
    if providers is not None:
        catalog.build_from_provider_response(providers)
    catalog.refresh_custom_voices(custom_voice_store.list())


@asynccontextmanager
async def lifespan(app: FastAPI):
    refresh_catalog()
    yield


app = FastAPI(title="VoiceArena", lifespan=lifespan)

# --- Voices ---

@app.get("/api/voices")
async def list_voices():
    return catalog.to_dict()

@app.post("/api/voices/refresh")
def refresh_voices():
    refresh_catalog()
    return catalog.to_dict()

@app.get("/api/voices/label")
async def voice_label(voice: str):
    return {"voice": voice, "label": resolve_label(catalog.groups, voice)}

@app.get("/api/custom-voices")
async def list_custom_voices():
    return [v.model_dump(by_alias=True) for v in custom_voice_store.list()]

@app.post("/api/custom-voices")
async def add_custom_voice(payload: Dict[str, Any] = Body(...)):
    try:
        voice = custom_voice_store.add(CustomVoice.model_validate(payload))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=409, detail="Custom voice already exists")
    catalog.refresh_custom_voices(custom_voice_store.list())
    return voice.model_dump(by_alias=True)

@app.delete("/api/custom-voices/{voice_id}")
async def delete_custom_voice(voice_id: str):
    if not custom_voice_store.delete(voice_id):
        raise HTTPException(status_code=404, detail="Custom voice not found")
    catalog.refresh_custom_voices(custom_voice_store.list())
    return {"ok": True}

# --- History ---

@app.post("/api/history")
async def add_history(payload: Dict[str, Any] = Body(...)):
    try:
        record_id = history_store.add(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"id": record_id}

@app.get("/api/history")
async def list_history(page: int = 1, page_size: int = PAGE_SIZE, kind: str = "all"):
    try:
        result = history_store.list_page(page, page_size, kind)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.model_dump()

@app.get("/api/history/{record_id}")
async def get_history(record_id: str):
    record = history_store.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="History record not found")
    return record.model_dump()

@app.patch("/api/history/{record_id}")
async def update_history(record_id: str, update: WinnerUpdate):
    result = history_store.update(record_id, update.model_dump())
    return {"ok": result.ok}

@app.delete("/api/history/{record_id}")
async def delete_history(record_id: str):
    result = history_store.delete(record_id)
    return {"ok": result.ok, "removed": result.removed_record}

@app.delete("/api/history/{record_id}/items/{index}")
async def delete_history_item(record_id: str, index: int, type: str):
    result = history_store.delete_sub_item(record_id, index, type)
    return {"ok": result.ok, "removed": result.removed_record}

# --- Generation ---
# Routes that wait on the upstream API are plain ``def`` (FastAPI runs them in its thread pool).

def _generator() -> SpeechGenerator:
    return SpeechGenerator(tts_service, catalog, history_store)

def _generate(flow, request):
    try:
        return flow(request)
    except GenerationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TTSServiceError as e:
        logger.error(f"Generation failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

@app.post("/api/generate/single-text-single-voice")
def generate_single_text_single_voice(request: SingleTextSingleVoiceRequest):
    return _generate(_generator().single_text_single_voice, request).model_dump()

@app.post("/api/generate/single-text-multiple-voices")
def generate_single_text_multiple_voices(request: SingleTextMultipleVoicesRequest):
    return _generate(_generator().single_text_multiple_voices, request).model_dump()

@app.post("/api/generate/multiple-texts-single-voice")
def generate_multiple_texts_single_voice(request: MultipleTextsSingleVoiceRequest):
    return _generate(_generator().multiple_texts_single_voice, request).model_dump()

@app.post("/api/generate/multiple-texts-multiple-voices")
def generate_multiple_texts_multiple_voices(request: MultipleTextsMultipleVoicesRequest):
    return _generate(_generator().multiple_texts_multiple_voices, request).model_dump()

# --- PK ---

@app.post("/api/pk")
def start_pk(request: PkRequest):
    record = _generate(_generator().pk, request)
    sides = record.voices.model_dump()
    return {
        "id": record.id,
        **{
            side: {
                **data,
                "label": resolve_label(catalog.groups, data["voice"]),
                "download_name": generate_download_filename(data["voice"], data["text"], side, url=data["url"]),
            }
            for side, data in sides.items()
        },
    }

@app.post("/api/pk/{record_id}/vote")
async def vote_pk(record_id: str, vote: WinnerUpdate):
    record = history_store.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="PK record not found")
    if record.type != PK:
        raise HTTPException(status_code=400, detail="Not a PK record")
    result = history_store.update(record_id, vote.model_dump())
    return {"ok": result.ok, "winner": vote.winner}

# --- Voice cloning ---

@app.post("/api/voice-clone")
def clone_voice(
    file: UploadFile = File(...),
    title: str = Form(...),
    visibility: str = Form("unlist"),
    type: str = Form("tts"),
    train_mode: str = Form("fast"),
):
    audio = file.file.read()
    try:
        voice = voice_clone_service.clone_voice(
            audio,
            title,
            visibility=visibility,
            voice_type=type,
            train_mode=train_mode,
            filename=file.filename or "recording.wav",
        )
    except VoiceCloneError as e:
        raise HTTPException(status_code=502, detail=str(e))
    try:
        voice = custom_voice_store.add(voice)
    except KeyError:
        raise HTTPException(status_code=409, detail="Custom voice already exists")
    catalog.refresh_custom_voices(custom_voice_store.list())
    return voice.model_dump(by_alias=True)

# --- Leaderboard ---

@app.get("/api/leaderboard")
async def get_leaderboard():
    return [row.model_dump() for row in leaderboard.rows(catalog)]

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
