"""
Voice catalog: provider -> (locale ->) voice tree.

Every provider group holds VoiceOption leaves directly, except Azure whose
children are one VoiceGroup per language code, each holding the voices.

The tree is owned by a VoiceCatalog instance. Refreshes build a new tree and
swap it in only on success, so a failed refresh leaves the previous tree in
place. Provider refreshes merge by provider: groups for providers missing
from the response keep their children.
"""
import logging
import random
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .languages import is_valid_iso639_1, native_name
from .models import (
    CustomVoice,
    ProviderInfo,
    ProviderListResponse,
    ProviderVoice,
    VoiceGroup,
    VoiceOption,
)

logger = logging.getLogger(__name__)

AZURE = "Azure"
CUSTOM = "custom"

# provider name as reported upstream (lower-cased) -> catalog group value
PROVIDER_GROUPS: Dict[str, str] = {
    "openai": "OpenAI",
    "azure": AZURE,
    "doubao": "Doubao",
    "fish": "fish",
    "minimaxi": "Minimaxi",
}

OPENAI_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")

# Azure ships one preview clip per voice; it is offered under each of these UI languages
PREVIEW_LANGS = ("zh", "en", "ja")

GENDER_LABELS: Dict[str, Dict[str, str]] = {
    "en": {"male": "Male", "female": "Female", "neutral": "Neutral"},
    "zh": {"male": "男", "female": "女", "neutral": "中性"},
    "ja": {"male": "男性", "female": "女性", "neutral": "中性"},
}


def default_groups() -> List[VoiceGroup]:
    """Catalog skeleton used before any provider metadata has been fetched."""
    return [
        VoiceGroup(
            key="OpenAI",
            label="OpenAI",
            value="OpenAI",
            children=[VoiceOption(key=v, label=v, value=v) for v in ("fable", "alloy", "echo", "nova", "shimmer")],
        ),
        VoiceGroup(key=AZURE, label="Azure", value=AZURE),
        VoiceGroup(key="Doubao", label="Doubao", value="Doubao"),
        VoiceGroup(key="fish", label="FishAudio", value="fish"),
        VoiceGroup(key="Minimaxi", label="Minimax", value="Minimaxi"),
        VoiceGroup(key=CUSTOM, label="Custom", value=CUSTOM),
    ]


def gender_tag(gender: Optional[str], locale: str = "en") -> str:
    if not gender:
        return ""
    labels = GENDER_LABELS.get(locale.split("-")[0].lower(), GENDER_LABELS["en"])
    return f"({labels.get(gender.lower(), gender)})"


def _with_gender(name: str, gender: Optional[str], locale: str) -> str:
    tag = gender_tag(gender, locale)
    return f"{name} {tag}" if tag else name


def preview_url(voice: ProviderVoice) -> Optional[str]:
    """Preview clip of a raw provider record: an explicit preview field, else the first sample URL."""
    extra = voice.model_extra or {}
    for field in ("preview_url", "previewUrl", "audioFileEndpointWithSas"):
        if extra.get(field):
            return extra[field]
    return next((url for url in voice.sample.values() if url), None)


def iter_options(node: Union[VoiceGroup, VoiceOption]) -> Iterator[VoiceOption]:
    """All leaf voices under *node*, depth first."""
    if isinstance(node, VoiceOption):
        yield node
        return
    for child in node.children:
        yield from iter_options(child)


class VoiceCatalog:
    def __init__(self, locale: str = "en", groups: Optional[List[VoiceGroup]] = None):
        self.locale = locale
        self.groups: List[VoiceGroup] = groups if groups is not None else default_groups()

    @property
    def is_chinese(self) -> bool:
        return self.locale.lower().startswith("zh")

    def find_group(self, value: str) -> Optional[VoiceGroup]:
        return next((g for g in self.groups if g.value == value), None)

    def platforms(self, exclude_custom: bool = True) -> List[str]:
        return [g.value for g in self.groups if not (exclude_custom and g.value == CUSTOM)]

    def to_dict(self) -> List[Dict[str, Any]]:
        return [g.model_dump() for g in self.groups]

    def random_voice(
        self, exclude: str = "", rng: Optional[random.Random] = None, platform: Optional[str] = None
    ) -> Optional[Tuple[str, str]]:
        """
        Pick a random (platform, voice value), skipping the compound id *exclude*.

        Without *platform* the custom group is left out; with it, only that
        group is drawn from.
        """
        rng = rng or random.Random()
        choices = [
            (group.value, option.value)
            for group in self.groups
            if (group.value == platform if platform else group.value != CUSTOM)
            for option in iter_options(group)
            if f"{group.value}:{option.value}" != exclude
        ]
        return rng.choice(choices) if choices else None

    # --- provider metadata ---

    def _option(self, voice: ProviderVoice, display_name: str) -> VoiceOption:
        return VoiceOption(
            key=voice.voice,
            label=_with_gender(display_name, voice.gender, self.locale),
            value=voice.voice,
            origin_data=voice.model_dump(),
        )

    def _openai_options(self, voices: List[ProviderVoice]) -> List[VoiceOption]:
        options = []
        for voice in voices:
            if voice.voice.lower() not in OPENAI_VOICES:
                continue
            name = voice.name or voice.voice
            options.append(self._option(voice, name[:1].upper() + name[1:]))
        return options

    def _flat_options(self, voices: List[ProviderVoice]) -> List[VoiceOption]:
        return [self._option(voice, voice.name or voice.voice) for voice in voices]

    def _azure_groups(self, voices: List[ProviderVoice]) -> List[VoiceGroup]:
        located = []
        for voice in voices:
            locale = (voice.model_extra or {}).get("Locale") or voice.voice
            option = self._option(voice, voice.name or voice.voice)
            url = preview_url(voice)
            if url:
                option.origin_data["sample"] = {lang: url for lang in PREVIEW_LANGS}
            located.append((locale, option))

        codes = []
        for locale, _ in located:
            code = locale.split("-")[0]
            if code not in codes and is_valid_iso639_1(code):
                codes.append(code)
        if self.is_chinese:
            codes = [c for c in codes if c == "zh"]

        groups = [
            VoiceGroup(
                key=code,
                label=native_name(code),
                value=code,
                children=[option for locale, option in located if locale.startswith(code)],
            )
            for code in codes
        ]
        groups.sort(key=lambda g: (g.key != "zh", g.label.casefold()))
        return groups

    def build_from_provider_response(
        self, response: Union[ProviderListResponse, Dict[str, Any], List[ProviderInfo]]
    ) -> List[VoiceGroup]:
        """
        Rebuild provider groups from ``/302/tts/provider`` metadata.

        Only providers present in *response* are replaced. On any error the
        previous tree is kept and returned.
        """
        try:
            if isinstance(response, dict):
                response = ProviderListResponse.model_validate(response)
            elif isinstance(response, list):
                response = ProviderListResponse(provider_list=response)

            found: Dict[str, ProviderInfo] = {}
            for info in response.provider_list:
                found.setdefault(info.provider.lower(), info)

            groups = [g.model_copy(deep=True) for g in self.groups]
            for provider, group_value in PROVIDER_GROUPS.items():
                info = found.get(provider)
                if info is None:
                    continue
                group = next((g for g in groups if g.value == group_value), None)
                if group is None:
                    logger.warning(f"No catalog group for provider {provider}")
                    continue
                voices = info.req_params_info.voice_list
                if provider == "openai":
                    group.children = self._openai_options(voices)
                elif provider == "azure":
                    group.children = self._azure_groups(voices)
                else:
                    group.children = self._flat_options(voices)
        except Exception as e:
            logger.error(f"Failed to build voice catalog: {e}")
            return self.groups

        self.groups = groups
        logger.info(f"Voice catalog rebuilt from {len(found)} providers")
        return self.groups

    # --- custom voices ---

    def refresh_custom_voices(self, custom_voices: Iterable[Union[CustomVoice, Dict[str, Any]]]) -> List[VoiceGroup]:
        """Replace the custom group's children with the stored cloned voices."""
        try:
            children = []
            for voice in custom_voices:
                if not isinstance(voice, CustomVoice):
                    voice = CustomVoice.model_validate(voice)
                children.append(
                    VoiceOption(
                        key=voice.id,
                        label=voice.title,
                        value=voice.id,
                        origin_data=voice.model_dump(by_alias=True),
                    )
                )
            custom = VoiceGroup(key=CUSTOM, label="Custom", value=CUSTOM, children=children)
            groups = [custom if g.value == CUSTOM else g for g in self.groups]
            if self.find_group(CUSTOM) is None:
                groups.append(custom)
        except Exception as e:
            logger.error(f"Failed to refresh custom voices: {e}")
            return self.groups

        self.groups = groups
        return self.groups
