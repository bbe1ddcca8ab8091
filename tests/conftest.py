# tests/conftest.py
import os
import asyncio
import logging
import pytest
import httpx

# Ensure test-friendly env: real provider selection, no forced mock mode
os.environ.setdefault("PROVIDER", "gemini")
os.environ.setdefault("MOCK_ENABLED", "false")
os.environ.setdefault("STREAM_FRAMING", "auto")

# IMPORTANT: import config after envs are set
from ai_services.core import config  # noqa: E402
from ai_services.mock.model import MockTextGenerationModel  # noqa: E402


@pytest.fixture
def mock_model():
    # a fresh dispatcher per test so registrations never leak between scenarios
    return MockTextGenerationModel()


@pytest.fixture
def chunked_response():
    # builds an unread httpx.Response whose body arrives in the given byte chunks,
    # optionally failing with `error` after the last chunk (a dropped connection)
    def make(chunks, *, status_code=200, content_type=None, error=None, pulled=None):
        async def body():
            for chunk in chunks:
                if pulled is not None:
                    pulled.append(chunk)
                yield chunk
                await asyncio.sleep(0)
            if error is not None:
                raise error

        headers = {"Content-Type": content_type} if content_type else {}
        return httpx.Response(status_code, headers=headers, content=body())

    return make


@pytest.fixture
def caplog_debug(caplog):
    caplog.set_level(logging.DEBUG)
    return caplog
