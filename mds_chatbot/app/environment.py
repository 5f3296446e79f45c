from __future__ import annotations

"""Environment validation and configuration status reporting."""

import os
from dataclasses import dataclass, field
from typing import Callable, Mapping


def _is_float_between(low: float, high: float) -> Callable[[str], bool]:
    def _check(value: str) -> bool:
        try:
            number = float(value)
        except ValueError:
            return False
        return low <= number <= high

    return _check


def _is_int_in_range(low: int, high: int) -> Callable[[str], bool]:
    def _check(value: str) -> bool:
        try:
            number = int(value)
        except ValueError:
            return False
        return low < number <= high

    return _check


@dataclass(frozen=True)
class EnvVar:
    description: str
    required: bool = False
    default: str | None = None
    validate: Callable[[str], bool] | None = None


ENV_CONFIG: dict[str, EnvVar] = {
    "OPENAI_API_KEY": EnvVar(
        "OpenAI API key for GPT models",
        validate=lambda value: value.startswith("sk-"),
    ),
    "GROQ_API_KEY": EnvVar("Groq API key for Llama models (free at console.groq.com)"),
    "HUGGINGFACE_API_KEY": EnvVar("Hugging Face API key for HF models"),
    "OPENAI_MODEL": EnvVar("OpenAI model to use", default="gpt-4o-mini"),
    "OPENAI_TEMPERATURE": EnvVar(
        "OpenAI temperature setting", default="0.7", validate=_is_float_between(0.0, 2.0)
    ),
    "OPENAI_MAX_TOKENS": EnvVar(
        "OpenAI max tokens setting", default="1000", validate=_is_int_in_range(0, 4096)
    ),
    "RAG_CONVERSATION_DB_URI": EnvVar(
        "SQLAlchemy connection URI for conversation storage",
        validate=lambda value: "://" in value,
    ),
    "RAG_API_KEY_MAP": EnvVar("JSON object mapping API keys to user IDs"),
    "RAG_DOCUMENT_PATH": EnvVar(
        "Source document for keyword retrieval", default="data/academy_faq.md"
    ),
}

PROVIDER_KEYS: dict[str, str] = {
    "OPENAI_API_KEY": "OpenAI",
    "GROQ_API_KEY": "Groq",
    "HUGGINGFACE_API_KEY": "Hugging Face",
}


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    missing_required: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EnvironmentStatus:
    has_auth: bool
    has_database: bool
    available_providers: list[str]
    required_missing: list[str]
    errors: list[str]
    warnings: list[str]

    @property
    def is_configured(self) -> bool:
        return not self.errors and bool(self.available_providers)


def validate_environment(env: Mapping[str, str] | None = None) -> ValidationResult:
    """Check required keys, value formats and that some provider is usable."""
    source = os.environ if env is None else env
    result = ValidationResult(valid=True)
    for key, config in ENV_CONFIG.items():
        value = source.get(key)
        if not value:
            if config.required:
                result.missing_required.append(key)
                result.errors.append(
                    f"Missing required environment variable: {key} - {config.description}"
                )
            else:
                result.missing_optional.append(key)
                result.warnings.append(
                    f"Missing optional environment variable: {key} - {config.description}"
                )
            continue
        if config.validate and not config.validate(value):
            # Never echo secrets back into reports.
            result.errors.append(f"Invalid value for {key}")
    if not any(source.get(key) for key in PROVIDER_KEYS):
        result.errors.append(
            "At least one AI provider API key is required "
            "(OPENAI_API_KEY, GROQ_API_KEY, or HUGGINGFACE_API_KEY)"
        )
    result.valid = not result.errors
    return result


def environment_status(env: Mapping[str, str] | None = None) -> EnvironmentStatus:
    source = os.environ if env is None else env
    validation = validate_environment(source)
    return EnvironmentStatus(
        has_auth=bool(source.get("RAG_API_KEY_MAP") or source.get("RAG_TRUSTED_USER_HEADER")),
        has_database=bool(source.get("RAG_CONVERSATION_DB_URI")),
        available_providers=[name for key, name in PROVIDER_KEYS.items() if source.get(key)],
        required_missing=validation.missing_required,
        errors=validation.errors,
        warnings=validation.warnings,
    )


def render_env_template() -> str:
    """Render a commented .env template covering every known variable."""
    lines = [
        "# MDS Chatbot environment variables",
        "# Copy this file to .env and fill in your values",
        "",
    ]
    for key, config in ENV_CONFIG.items():
        lines.append(f"# {config.description}")
        if config.required:
            lines.append(f"{key}=")
        else:
            lines.append(f"# {key}={config.default or ''}")
        lines.append("")
    lines.extend(
        [
            "# Quick setup:",
            "# 1. Get a Groq API key (free) at https://console.groq.com",
            "# 2. Get an OpenAI API key at https://platform.openai.com (optional)",
            "# 3. Point RAG_CONVERSATION_DB_URI at a database (optional, for history)",
        ]
    )
    return "\n".join(lines) + "\n"
