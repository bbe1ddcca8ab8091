# centralized configuration loader
# runs load_dotenv() to read .env
# decouples code from environment so hosts/models/timeouts can change without code change

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "y"}


# Provider
PROVIDER = os.getenv("PROVIDER", "gemini")
GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# Transport
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))
STREAM_TIMEOUT = float(os.getenv("STREAM_TIMEOUT", "120"))
CONNECT_TIMEOUT = float(os.getenv("CONNECT_TIMEOUT", "10"))
USER_AGENT = os.getenv("USER_AGENT", "ai-services-python/0.1.0")

# Stream decoding: auto | json | ndjson | sse
STREAM_FRAMING = os.getenv("STREAM_FRAMING", "auto").lower()

# Test mode: route get_model() to the mock model
MOCK_ENABLED = _env_bool("MOCK_ENABLED", "false")
