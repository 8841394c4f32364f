import os
import tempfile

# core.config creates DATA_DIR on import; keep test runs out of the repo
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="voicearena-test-"))
os.environ.pop("API_KEY", None)
os.environ.pop("TTS_API_KEY", None)
