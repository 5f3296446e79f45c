from __future__ import annotations

"""JSON and Markdown export of conversations, plus import validation."""

import re
from datetime import datetime, timezone
from typing import Any

from mds_chatbot.conversations.store import Conversation

EXPORT_VERSION = "1.0.0"

_FILENAME_RE = re.compile(r"[^a-zA-Z0-9]")


def export_conversations(
    conversations: list[Conversation], exported_at: datetime | None = None
) -> dict[str, Any]:
    """Build the versioned JSON export document."""
    stamp = exported_at or datetime.now(timezone.utc)
    return {
        "version": EXPORT_VERSION,
        "exported": stamp.isoformat(),
        "conversations": [
            {
                "id": conversation.id,
                "title": conversation.title,
                "messages": [message.to_dict() for message in conversation.messages],
                "ai_provider": conversation.ai_provider or "unknown",
                "created_at": conversation.created_at.isoformat(),
                "updated_at": conversation.updated_at.isoformat(),
                "message_count": len(conversation.messages),
            }
            for conversation in conversations
        ],
    }


def export_filename(exported_at: datetime | None = None) -> str:
    stamp = (exported_at or datetime.now(timezone.utc)).date().isoformat()
    return f"mds-chatbot-conversations-{stamp}.json"


def export_conversation_markdown(conversation: Conversation) -> str:
    """Render one conversation as a Markdown transcript."""
    lines = [
        f"# {conversation.title}",
        "",
        f"**Created:** {conversation.created_at.date().isoformat()}",
        f"**AI Provider:** {conversation.ai_provider}",
        f"**Messages:** {len(conversation.messages)}",
        "",
        "---",
        "",
    ]
    for message in conversation.messages:
        speaker = "**You**" if message.role == "user" else "**Assistant**"
        lines.append(f"## {speaker} *({message.timestamp.strftime('%H:%M:%S')})*")
        lines.append("")
        lines.append(message.content)
        lines.append("")
    return "\n".join(lines)


def markdown_filename(conversation: Conversation) -> str:
    return f"{_FILENAME_RE.sub('-', conversation.title)}.md"


def validate_import_data(data: Any) -> tuple[bool, list[str]]:
    """Check an export document before import; returns (valid, errors)."""
    errors: list[str] = []
    if not isinstance(data, dict):
        return False, ["Invalid data format"]
    if not data.get("version"):
        errors.append("Missing version information")
    conversations = data.get("conversations")
    if not isinstance(conversations, list):
        errors.append("Invalid conversations data")
        return False, errors
    for index, conversation in enumerate(conversations, start=1):
        if not isinstance(conversation, dict):
            errors.append(f"Conversation {index}: Invalid conversation data")
            continue
        if not conversation.get("id"):
            errors.append(f"Conversation {index}: Missing ID")
        if not conversation.get("title"):
            errors.append(f"Conversation {index}: Missing title")
        messages = conversation.get("messages")
        if not isinstance(messages, list):
            errors.append(f"Conversation {index}: Invalid messages data")
            continue
        for position, message in enumerate(messages, start=1):
            prefix = f"Conversation {index}, Message {position}"
            if not isinstance(message, dict):
                errors.append(f"{prefix}: Invalid message data")
                continue
            if not message.get("id"):
                errors.append(f"{prefix}: Missing ID")
            if not message.get("content"):
                errors.append(f"{prefix}: Missing content")
            if message.get("role") not in {"user", "assistant"}:
                errors.append(f"{prefix}: Invalid role")
    return not errors, errors
