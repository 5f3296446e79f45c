from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional in minimal setups
    load_dotenv = None

if load_dotenv is not None:
    load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DOCUMENT_PATH = PROJECT_ROOT / "data" / "academy_faq.md"
DEFAULT_DOMAIN_TERMS = "academy,school,education,student,course,program,admission"
DEFAULT_GROQ_MODELS = "llama-3.1-8b-instant,llama-3.3-70b-versatile,gemma2-9b-it"
DEFAULT_HF_MODELS = "gpt2,microsoft/DialoGPT-medium,microsoft/DialoGPT-small"


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(value.strip() for value in raw.split(",") if value.strip())


@dataclass(frozen=True)
class Settings:
    chunk_size: int = int(os.getenv("RAG_CHUNK_SIZE", "1000"))
    chunk_overlap: int = int(os.getenv("RAG_CHUNK_OVERLAP", "200"))
    top_k: int = int(os.getenv("RAG_TOP_K", "3"))
    phrase_weight: float = float(os.getenv("RAG_PHRASE_WEIGHT", "10"))
    term_weight: float = float(os.getenv("RAG_TERM_WEIGHT", "2"))
    domain_weight: float = float(os.getenv("RAG_DOMAIN_WEIGHT", "1"))
    domain_terms_raw: str = os.getenv("RAG_DOMAIN_TERMS", DEFAULT_DOMAIN_TERMS)
    organization_name: str = os.getenv("RAG_ORGANIZATION_NAME", "Abu Rayyan Academy")
    contact_phone: str = os.getenv("RAG_CONTACT_PHONE", "+974 XXXX XXXX (Main Office)")
    contact_email: str = os.getenv("RAG_CONTACT_EMAIL", "info@aburayyanacademy.edu.qa")
    admissions_email: str = os.getenv(
        "RAG_ADMISSIONS_EMAIL", "admissions@aburayyanacademy.edu.qa"
    )
    contact_website: str = os.getenv("RAG_CONTACT_WEBSITE", "www.aburayyanacademy.edu.qa")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    openai_temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    openai_max_tokens: int = int(os.getenv("OPENAI_MAX_TOKENS", "1000"))
    groq_base_url: str = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
    groq_models_raw: str = os.getenv("GROQ_MODELS", DEFAULT_GROQ_MODELS)
    huggingface_base_url: str = os.getenv(
        "HUGGINGFACE_BASE_URL", "https://api-inference.huggingface.co/models"
    )
    huggingface_models_raw: str = os.getenv("HUGGINGFACE_MODELS", DEFAULT_HF_MODELS)
    llm_timeout: float = float(os.getenv("LLM_TIMEOUT", "60"))
    chat_history_turns: int = int(os.getenv("CHAT_HISTORY_TURNS", "10"))
    metrics_enabled: bool = os.getenv("RAG_METRICS_ENABLED", "true").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    document_path_raw: str = os.getenv("RAG_DOCUMENT_PATH", "")
    conversation_db_uri_raw: str = os.getenv("RAG_CONVERSATION_DB_URI", "")
    api_key_map_raw: str = os.getenv("RAG_API_KEY_MAP", "")
    trusted_user_header_raw: str = os.getenv("RAG_TRUSTED_USER_HEADER", "")
    allow_guests_raw: str = os.getenv("RAG_ALLOW_GUESTS", "true")

    @property
    def domain_terms(self) -> tuple[str, ...]:
        return tuple(term.lower() for term in _split_csv(self.domain_terms_raw))

    @property
    def groq_models(self) -> tuple[str, ...]:
        return _split_csv(self.groq_models_raw)

    @property
    def huggingface_models(self) -> tuple[str, ...]:
        return _split_csv(self.huggingface_models_raw)

    @property
    def openai_api_key(self) -> str | None:
        return os.getenv("OPENAI_API_KEY") or None

    @property
    def groq_api_key(self) -> str | None:
        return os.getenv("GROQ_API_KEY") or None

    @property
    def huggingface_api_key(self) -> str | None:
        return os.getenv("HUGGINGFACE_API_KEY") or None

    @property
    def document_path(self) -> Path:
        raw = os.getenv("RAG_DOCUMENT_PATH", self.document_path_raw).strip()
        if not raw:
            return DEFAULT_DOCUMENT_PATH
        path = Path(raw)
        return path if path.is_absolute() else PROJECT_ROOT / path

    @property
    def conversation_db_uri(self) -> str | None:
        raw = os.getenv("RAG_CONVERSATION_DB_URI", self.conversation_db_uri_raw).strip()
        return raw or None

    @property
    def trusted_user_header(self) -> str | None:
        raw = os.getenv("RAG_TRUSTED_USER_HEADER", self.trusted_user_header_raw).strip()
        return raw.lower() or None

    @property
    def allow_guests(self) -> bool:
        raw = os.getenv("RAG_ALLOW_GUESTS", self.allow_guests_raw)
        return raw.strip().lower() in {"1", "true", "yes"}

    @property
    def api_key_map(self) -> dict[str, str]:
        raw = os.getenv("RAG_API_KEY_MAP", self.api_key_map_raw).strip()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        result: dict[str, str] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            if isinstance(value, str) and value.strip():
                result[key] = value.strip()
            elif isinstance(value, dict) and isinstance(value.get("user_id"), str):
                result[key] = value["user_id"].strip()
        return result


settings = Settings()
