import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s"

# Completion settings shared by every provider
COMPLETION_TEMPERATURE = 0.7
COMPLETION_MAX_TOKENS = 1500

DEFAULT_OPENAI_MODEL = "claude-3-haiku-20240307"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

TRANSCRIPT_CACHE_MAX_SIZE = 128
TRANSCRIPT_CACHE_TTL_SECONDS = 60 * 60  # an hour

PROMPTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "prompts")


def transcript_languages() -> list[str]:
    raw = os.getenv("TRANSCRIPT_LANGUAGES", "en")
    languages = [lang.strip() for lang in raw.split(",") if lang.strip()]
    return languages or ["en"]


def configure_logging(level=None):
    """Attach the stdout handler to the root logger once."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if any(getattr(h, "_yt_analyzer", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._yt_analyzer = True
    root.addHandler(handler)

    # Third-party clients are chatty at INFO
    for name in ("httpx", "openai", "googleapiclient.discovery_cache", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)
