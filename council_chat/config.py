"""Runtime configuration for Council Chat."""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.getenv("COUNCIL_DATA_DIR", Path(__file__).parent.parent / "data"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PROVIDER_API_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "xai": "XAI_API_KEY",
}


def get_api_key(provider: str) -> str:
    """Read a provider API key from the environment (empty if unset)."""
    key = os.getenv(PROVIDER_API_KEYS.get(provider, ""), "")
    if not key and provider == "google":
        key = os.getenv("GEMINI_API_KEY", "")
    return key.strip()


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
