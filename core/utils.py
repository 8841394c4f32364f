import random
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

AUDIO_EXTENSIONS = ("mp3", "wav", "ogg", "m4a", "aac", "flac")

SAMPLE_TEXTS = [
    "生活就像海洋，只有意志坚强的人才能到达彼岸",
    "失败是成功之母，每一次失败都是通往成功的垫脚石",
    "机会总是留给有准备的人，只有不断学习和积累，才能抓住它",
    "光阴似箭，岁月不等人，珍惜当下，活在此刻",
    "世界上没有绝对的公平，但我们可以努力去创造自己的机会",
    "在成长的道路上，勇敢做自己，不为他人的眼光而动摇",
    "每个看似不可能的梦想，都是从一个坚定的信念开始的",
    "成功不是终点，失败也不是末日，只有持续的勇气才是最终的胜利",
    "人生是一场旅行，重要的不是目的地，而是沿途的风景和看风景的心情",
    "每一朵乌云都有银色的光边，困境中总能找到希望",
]


def random_sample_text(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(SAMPLE_TEXTS)


def audio_extension(url: str) -> str:
    """File extension of an audio URL, "mp3" when unknown."""
    try:
        ext = urlparse(url).path.rsplit(".", 1)[-1].lower()
    except ValueError:
        return "mp3"
    return ext if ext in AUDIO_EXTENSIONS else "mp3"


def generate_download_filename(
    voice_id: str,
    text: Optional[str] = None,
    side: Optional[str] = None,
    url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """e.g. ``tts_alloy_left_Hello worl_2025-01-31T08-30-00.mp3``"""
    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    voice_name = voice_id.split(":")[-1] or "unknown"
    side_text = f"_{side}" if side else ""
    text_preview = f"_{text[:10]}" if text else ""
    ext = audio_extension(url) if url else "mp3"
    return f"tts_{voice_name}{side_text}{text_preview}_{timestamp}.{ext}"
