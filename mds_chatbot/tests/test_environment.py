from __future__ import annotations

from mds_chatbot.app.environment import (
    ENV_CONFIG,
    environment_status,
    render_env_template,
    validate_environment,
)


def test_no_provider_key_is_an_error() -> None:
    result = validate_environment({})
    assert not result.valid
    assert any("At least one AI provider" in error for error in result.errors)
    assert "OPENAI_API_KEY" in result.missing_optional


def test_groq_key_alone_is_valid() -> None:
    result = validate_environment({"GROQ_API_KEY": "gsk_test"})
    assert result.valid
    assert result.errors == []


def test_malformed_values_reported_without_echo() -> None:
    result = validate_environment(
        {"GROQ_API_KEY": "gsk_test", "OPENAI_API_KEY": "bad-secret", "OPENAI_TEMPERATURE": "9"}
    )
    assert not result.valid
    assert "Invalid value for OPENAI_API_KEY" in result.errors
    assert "Invalid value for OPENAI_TEMPERATURE" in result.errors
    assert not any("bad-secret" in error for error in result.errors)


def test_status_lists_providers_and_services() -> None:
    status = environment_status(
        {
            "GROQ_API_KEY": "gsk_test",
            "HUGGINGFACE_API_KEY": "hf_test",
            "RAG_CONVERSATION_DB_URI": "sqlite:///chat.db",
        }
    )
    assert status.available_providers == ["Groq", "Hugging Face"]
    assert status.has_database
    assert not status.has_auth
    assert status.is_configured


def test_template_mentions_every_variable() -> None:
    template = render_env_template()
    for key in ENV_CONFIG:
        assert key in template
