import random
from datetime import datetime

from core.languages import is_valid_iso639_1, native_name
from core.utils import SAMPLE_TEXTS, audio_extension, generate_download_filename, random_sample_text

NOW = datetime(2025, 1, 31, 8, 30, 0)


def test_download_filename_uses_voice_name_side_and_text_preview():
    name = generate_download_filename("Azure:zh-CN-XiaoxiaoNeural", "Hello world again", "left", now=NOW)
    assert name == "tts_zh-CN-XiaoxiaoNeural_left_Hello worl_2025-01-31T08-30-00.mp3"


def test_download_filename_minimal():
    assert generate_download_filename("alloy", now=NOW) == "tts_alloy_2025-01-31T08-30-00.mp3"


def test_download_filename_follows_audio_url_extension():
    name = generate_download_filename("fish:f1", url="https://cdn.test/a/b.WAV?sig=1", now=NOW)
    assert name.endswith(".wav")


def test_audio_extension_defaults_to_mp3():
    assert audio_extension("https://cdn.test/file.flac") == "flac"
    assert audio_extension("https://cdn.test/file.exe") == "mp3"
    assert audio_extension("https://cdn.test/file") == "mp3"


def test_random_sample_text():
    assert random_sample_text(random.Random(1)) in SAMPLE_TEXTS


def test_language_table():
    assert is_valid_iso639_1("zh")
    assert not is_valid_iso639_1("xx")
    assert not is_valid_iso639_1("zho")
    assert not is_valid_iso639_1("ZH")
    assert native_name("de") == "Deutsch"
    assert native_name("zh") == "中文"
    assert native_name("fr") == "Français"
    assert native_name("xx") is None
