import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))

# Ensure data dir exists
DATA_DIR.mkdir(parents=True, exist_ok=True)

HISTORY_PATH = DATA_DIR / "history.json"
CUSTOM_VOICES_PATH = DATA_DIR / "custom_voices.json"

# Hosted TTS API
API_BASE_URL = os.getenv("API_BASE_URL", "https://api.302.ai").rstrip("/")
API_KEY = os.getenv("API_KEY") or os.getenv("TTS_API_KEY")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 60))
# Voice cloning trains a model before answering
CLONE_TIMEOUT = float(os.getenv("CLONE_TIMEOUT", 120))

# UI locale drives gender tags and the Azure language filter ("zh" keeps only Chinese voices)
UI_LOCALE = os.getenv("UI_LOCALE", "en")

# History paging
PAGE_SIZE = int(os.getenv("PAGE_SIZE", 10))

# Server
PORT = int(os.getenv("PORT", 8000))
HOST = os.getenv("HOST", "0.0.0.0")
