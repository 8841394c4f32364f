"""Compound voice id ("<platform>:<voice>") -> display label."""
from typing import List

from .catalog import AZURE
from .models import VoiceGroup, VoiceOption


def resolve_label(groups: List[VoiceGroup], compound_id: str) -> str:
    """
    Look up the display label for *compound_id*. Never raises.

    Misses fall back to the input: an unknown platform returns the full
    compound id, an unknown voice on a known platform returns the bare voice id.
    """
    if not compound_id or ":" not in compound_id:
        return compound_id

    platform, voice_id = compound_id.split(":", 1)
    group = next((g for g in groups if g.value == platform), None)
    if group is None:
        return compound_id

    if platform == AZURE and "-" in voice_id:
        code = voice_id.split("-", 1)[0]
        locale_group = next(
            (c for c in group.children if isinstance(c, VoiceGroup) and c.value == code),
            None,
        )
        if locale_group is None:
            return voice_id
        voice = next(
            (c for c in locale_group.children if isinstance(c, VoiceOption) and c.value == voice_id),
            None,
        )
        return voice.label if voice else voice_id

    voice = next(
        (
            c
            for c in group.children
            if isinstance(c, VoiceOption) and (c.value == voice_id or f"{platform}:{c.value}" == compound_id)
        ),
        None,
    )
    return voice.label if voice else voice_id


def voice_label(groups: List[VoiceGroup], platform: str, voice: str) -> str:
    """Label for a (platform, voice) pair where *voice* may already be a compound id."""
    if not voice:
        return voice
    compound_id = voice if ":" in voice else f"{platform}:{voice}"
    return resolve_label(groups, compound_id)


def display_platform(name: str) -> str:
    if not name:
        return "Unknown"
    if name.lower() == "minimaxi":
        return "Minimax"
    return name[:1].upper() + name[1:]
