from __future__ import annotations

"""Conversation persistence for signed-in users."""

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

DEFAULT_TITLE = "New Conversation"
DEFAULT_PROVIDER = "chat-groq"
PREVIEW_CHARS = 100
TITLE_CHARS = 50


class ConversationStoreError(RuntimeError):
    """Raised when conversation persistence fails."""
    pass


class InvalidConversationId(ConversationStoreError):
    """Raised when a conversation ID is not well formed."""
    pass


@dataclass(frozen=True)
class Message:
    """Single chat turn."""
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            parsed = datetime.fromisoformat(timestamp)
        elif isinstance(timestamp, datetime):
            parsed = timestamp
        else:
            parsed = datetime.now(timezone.utc)
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            role=data.get("role", "user"),
            content=str(data.get("content", "")),
            timestamp=parsed,
        )


@dataclass(frozen=True)
class Conversation:
    id: str
    user_id: str
    title: str
    messages: list[Message]
    ai_provider: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ConversationSummary:
    id: str
    title: str
    ai_provider: str
    created_at: datetime
    updated_at: datetime
    message_count: int
    preview: str


@dataclass(frozen=True)
class ConversationUpdate:
    """Partial update; ``None`` leaves a field unchanged."""
    messages: list[Message] | None = None
    title: str | None = None
    ai_provider: str | None = None


def generate_title(messages: list[Message], now: datetime | None = None) -> str:
    """Title from the first user message, truncated to 50 characters."""
    first_user = next((message for message in messages if message.role == "user"), None)
    if first_user is not None:
        content = first_user.content.strip()
        if content:
            return content[:TITLE_CHARS] + "..." if len(content) > TITLE_CHARS else content
    stamp = (now or datetime.now(timezone.utc)).date().isoformat()
    return f"Conversation {stamp}"


def preview_of(messages: list[Message]) -> str:
    first_user = next((message for message in messages if message.role == "user"), None)
    return first_user.content[:PREVIEW_CHARS] if first_user else ""


def validate_conversation_id(conversation_id: str) -> str:
    try:
        return str(uuid.UUID(conversation_id))
    except (ValueError, AttributeError, TypeError) as exc:
        raise InvalidConversationId("Invalid conversation ID") from exc


class ConversationStore:
    """Store conversations in a SQL database, scoped by user ID."""
    def __init__(self, connection_uri: str) -> None:
        """Initialize the conversation store and ensure tables exist."""
        try:
            from sqlalchemy import (
                Column,
                DateTime,
                MetaData,
                String,
                Table,
                Text,
                create_engine,
            )
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise ConversationStoreError(
                "sqlalchemy is required to use the conversation store"
            ) from exc

        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._table = Table(
            "conversations",
            self._metadata,
            Column("id", String(36), primary_key=True),
            Column("user_id", String(255), nullable=False, index=True),
            Column("title", String(255), nullable=False),
            Column("ai_provider", String(64), nullable=False),
            Column("messages", Text, nullable=False),
            Column("created_at", DateTime(timezone=True), nullable=False),
            Column("updated_at", DateTime(timezone=True), nullable=False, index=True),
        )
        self._metadata.create_all(self._engine)

    def create(
        self,
        user_id: str,
        messages: list[Message],
        title: str | None = None,
        ai_provider: str | None = None,
    ) -> Conversation:
        """Insert a new conversation and return it."""
        now = datetime.now(timezone.utc)
        conversation = Conversation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title or DEFAULT_TITLE,
            messages=list(messages),
            ai_provider=ai_provider or DEFAULT_PROVIDER,
            created_at=now,
            updated_at=now,
        )
        with self._engine.begin() as conn:
            conn.execute(self._table.insert().values(**self._serialize(conversation)))
        return conversation

    def list_summaries(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[ConversationSummary]:
        """Return summaries, most recently updated first."""
        table = self._table
        statement = (
            table.select()
            .where(table.c.user_id == user_id)
            .order_by(table.c.updated_at.desc())
            .limit(limit)
            .offset(offset)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(statement).mappings().all()
        summaries: list[ConversationSummary] = []
        for row in rows:
            conversation = self._deserialize(row)
            summaries.append(
                ConversationSummary(
                    id=conversation.id,
                    title=conversation.title or "Untitled",
                    ai_provider=conversation.ai_provider,
                    created_at=conversation.created_at,
                    updated_at=conversation.updated_at,
                    message_count=len(conversation.messages),
                    preview=preview_of(conversation.messages),
                )
            )
        return summaries

    def get(self, user_id: str, conversation_id: str) -> Conversation | None:
        conversation_id = validate_conversation_id(conversation_id)
        table = self._table
        statement = table.select().where(
            (table.c.id == conversation_id) & (table.c.user_id == user_id)
        )
        with self._engine.connect() as conn:
            row = conn.execute(statement).mappings().first()
        return self._deserialize(row) if row else None

    def update(
        self, user_id: str, conversation_id: str, changes: ConversationUpdate
    ) -> Conversation | None:
        """Apply a partial update and return the stored result."""
        conversation_id = validate_conversation_id(conversation_id)
        values: dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
        if changes.messages is not None:
            values["messages"] = _dump_messages(changes.messages)
        if changes.title is not None:
            values["title"] = changes.title
        if changes.ai_provider is not None:
            values["ai_provider"] = changes.ai_provider
        table = self._table
        with self._engine.begin() as conn:
            result = conn.execute(
                table.update()
                .where((table.c.id == conversation_id) & (table.c.user_id == user_id))
                .values(**values)
            )
        if result.rowcount == 0:
            return None
        return self.get(user_id, conversation_id)

    def delete(self, user_id: str, conversation_id: str) -> bool:
        conversation_id = validate_conversation_id(conversation_id)
        table = self._table
        with self._engine.begin() as conn:
            result = conn.execute(
                table.delete().where(
                    (table.c.id == conversation_id) & (table.c.user_id == user_id)
                )
            )
        return result.rowcount > 0

    def list_full(self, user_id: str) -> list[Conversation]:
        """Return every conversation of a user, for export."""
        table = self._table
        statement = (
            table.select()
            .where(table.c.user_id == user_id)
            .order_by(table.c.updated_at.desc())
        )
        with self._engine.connect() as conn:
            rows = conn.execute(statement).mappings().all()
        return [self._deserialize(row) for row in rows]

    def _serialize(self, conversation: Conversation) -> dict[str, Any]:
        """Prepare a conversation row for insertion."""
        return {
            "id": conversation.id,
            "user_id": conversation.user_id,
            "title": conversation.title,
            "ai_provider": conversation.ai_provider,
            "messages": _dump_messages(conversation.messages),
            "created_at": conversation.created_at,
            "updated_at": conversation.updated_at,
        }

    def _deserialize(self, row: Any) -> Conversation:
        try:
            raw_messages = json.loads(row["messages"] or "[]")
        except json.JSONDecodeError as exc:
            raise ConversationStoreError(f"Corrupt messages for {row['id']}") from exc
        return Conversation(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            messages=[Message.from_dict(item) for item in raw_messages],
            ai_provider=row["ai_provider"] or DEFAULT_PROVIDER,
            created_at=_as_utc(row["created_at"]),
            updated_at=_as_utc(row["updated_at"]),
        )


def _dump_messages(messages: list[Message]) -> str:
    return json.dumps([message.to_dict() for message in messages], ensure_ascii=True)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on round trip.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
