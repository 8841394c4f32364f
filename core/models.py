from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

# --- Voice catalog ---

class VoiceOption(BaseModel):
    kind: Literal["voice"] = "voice"
    key: str
    label: str
    value: str
    origin_data: Optional[Dict[str, Any]] = None  # raw provider record

    def sample_url(self, lang: str) -> Optional[str]:
        """Preview clip for *lang* from the provider record, if it ships one."""
        sample = (self.origin_data or {}).get("sample") or {}
        return sample.get(lang) if isinstance(sample, dict) else None

class VoiceGroup(BaseModel):
    kind: Literal["group"] = "group"
    key: str
    label: str
    value: str
    children: List[Annotated[Union[VoiceOption, "VoiceGroup"], Field(discriminator="kind")]] = []

VoiceGroup.model_rebuild()

# --- Provider metadata (GET /302/tts/provider) ---

class ProviderVoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    voice: str
    name: str = ""
    sample: Dict[str, Optional[str]] = {}
    gender: Optional[str] = None
    emotion: List[str] = []

class ReqParamsInfo(BaseModel):
    voice_list: List[ProviderVoice] = []

class ProviderInfo(BaseModel):
    provider: str
    req_params_info: ReqParamsInfo = Field(default_factory=ReqParamsInfo)

class ProviderListResponse(BaseModel):
    provider_list: List[ProviderInfo] = []

# --- Custom (cloned) voices ---

class CustomVoice(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    type: str = ""
    visibility: str = ""
    created_at: Optional[int] = Field(default=None, alias="createdAt")  # epoch ms

# --- History payloads ---

HistoryType = Literal[
    "pk",
    "generate-single-text-single-voice",
    "generate-single-text-multiple-voices",
    "generate-multiple-texts-single-voice",
    "generate-multiple-texts-multiple-voices",
]

PK = "pk"
SINGLE_TEXT_SINGLE_VOICE = "generate-single-text-single-voice"
SINGLE_TEXT_MULTIPLE_VOICES = "generate-single-text-multiple-voices"
MULTIPLE_TEXTS_SINGLE_VOICE = "generate-multiple-texts-single-voice"
MULTIPLE_TEXTS_MULTIPLE_VOICES = "generate-multiple-texts-multiple-voices"

class PkSide(BaseModel):
    platform: str
    voice: str  # compound "<platform>:<voice>"
    text: str
    url: str

class PkVoices(BaseModel):
    left: PkSide
    right: PkSide

class SingleTextSingleVoice(BaseModel):
    voice: str
    text: str
    url: str
    platform: str
    voice_title: Optional[str] = None

class VoiceClip(BaseModel):
    voice: str
    url: str
    platform: str

class SingleTextMultipleVoices(BaseModel):
    text: str
    voices: List[VoiceClip]

class MultipleTextsSingleVoice(BaseModel):
    voice: str
    platform: str
    texts: List[str]
    urls: List[str]

    @model_validator(mode="after")
    def _paired(self):
        if len(self.texts) != len(self.urls):
            raise ValueError(f"texts and urls must pair up ({len(self.texts)} != {len(self.urls)})")
        return self

class TextVoicePair(BaseModel):
    text: str
    voice: str
    platform: str
    url: str

class MultipleTextsMultipleVoices(BaseModel):
    pairs: List[TextVoicePair]

# --- History records ---
# New* models are what the generation workflow hands to HistoryStore.add;
# the store adds id and created_at.

class NewPkRecord(BaseModel):
    type: Literal["pk"] = "pk"
    voices: PkVoices
    winner: Optional[Literal[0, 1]] = None

class NewSingleTextSingleVoiceRecord(BaseModel):
    type: Literal["generate-single-text-single-voice"] = "generate-single-text-single-voice"
    voices: SingleTextSingleVoice

class NewSingleTextMultipleVoicesRecord(BaseModel):
    type: Literal["generate-single-text-multiple-voices"] = "generate-single-text-multiple-voices"
    voices: SingleTextMultipleVoices

class NewMultipleTextsSingleVoiceRecord(BaseModel):
    type: Literal["generate-multiple-texts-single-voice"] = "generate-multiple-texts-single-voice"
    voices: MultipleTextsSingleVoice

class NewMultipleTextsMultipleVoicesRecord(BaseModel):
    type: Literal["generate-multiple-texts-multiple-voices"] = "generate-multiple-texts-multiple-voices"
    voices: MultipleTextsMultipleVoices

class PkRecord(NewPkRecord):
    id: str
    created_at: int  # epoch ms

class SingleTextSingleVoiceRecord(NewSingleTextSingleVoiceRecord):
    id: str
    created_at: int

class SingleTextMultipleVoicesRecord(NewSingleTextMultipleVoicesRecord):
    id: str
    created_at: int

class MultipleTextsSingleVoiceRecord(NewMultipleTextsSingleVoiceRecord):
    id: str
    created_at: int

class MultipleTextsMultipleVoicesRecord(NewMultipleTextsMultipleVoicesRecord):
    id: str
    created_at: int

NewHistoryRecord = Annotated[
    Union[
        NewPkRecord,
        NewSingleTextSingleVoiceRecord,
        NewSingleTextMultipleVoicesRecord,
        NewMultipleTextsSingleVoiceRecord,
        NewMultipleTextsMultipleVoicesRecord,
    ],
    Field(discriminator="type"),
]

HistoryRecord = Annotated[
    Union[
        PkRecord,
        SingleTextSingleVoiceRecord,
        SingleTextMultipleVoicesRecord,
        MultipleTextsSingleVoiceRecord,
        MultipleTextsMultipleVoicesRecord,
    ],
    Field(discriminator="type"),
]

new_history_adapter = TypeAdapter(NewHistoryRecord)
history_adapter = TypeAdapter(HistoryRecord)

class HistoryPage(BaseModel):
    items: List[HistoryRecord]
    total: int
    total_pages: int
    current_page: int

class WinnerUpdate(BaseModel):
    winner: Optional[Literal[0, 1]] = None

# --- Leaderboard ---

class ModelStats(BaseModel):
    model_id: str
    platform: str
    voice: str
    win_rate: float = 0.0  # NaN when pk_count == 0
    total_score: int = 0
    pk_count: int = 0

class LeaderboardRow(BaseModel):
    rank: int
    model_id: str
    platform: str
    voice: str
    win_rate: int
    total_score: int
    pk_count: int

# --- API requests ---

class PkRequest(BaseModel):
    text: Optional[str] = None  # random sample text when empty
    left_platform: Optional[str] = None  # random voice when a side is left out
    left_voice: Optional[str] = None
    right_platform: Optional[str] = None
    right_voice: Optional[str] = None
    speed: float = Field(default=1.0, gt=0)

# Generation requests name voices by compound id "<platform>:<voice>";
# an empty voice means "pick one at random".

class SingleTextSingleVoiceRequest(BaseModel):
    text: Optional[str] = None
    voice: Optional[str] = None
    speed: float = Field(default=1.0, gt=0)

class SingleTextMultipleVoicesRequest(BaseModel):
    text: Optional[str] = None
    voices: List[Optional[str]] = Field(min_length=1)
    speed: float = Field(default=1.0, gt=0)

class MultipleTextsSingleVoiceRequest(BaseModel):
    texts: List[str] = Field(min_length=1)
    voice: Optional[str] = None
    speed: float = Field(default=1.0, gt=0)

class TextVoiceChoice(BaseModel):
    text: Optional[str] = None
    voice: Optional[str] = None

class MultipleTextsMultipleVoicesRequest(BaseModel):
    pairs: List[TextVoiceChoice] = Field(min_length=1)
    speed: float = Field(default=1.0, gt=0)
