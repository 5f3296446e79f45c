from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["RAG_ALLOW_GUESTS"] = "true"
os.environ["RAG_METRICS_ENABLED"] = "true"
for _key in (
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "HUGGINGFACE_API_KEY",
    "RAG_API_KEY_MAP",
    "RAG_TRUSTED_USER_HEADER",
    "RAG_CONVERSATION_DB_URI",
    "RAG_DOCUMENT_PATH",
):
    os.environ.pop(_key, None)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
