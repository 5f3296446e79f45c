from __future__ import annotations

from functools import lru_cache

from mds_chatbot.app.settings import settings
from mds_chatbot.conversations.store import ConversationStore
from mds_chatbot.loaders.chunking import TextChunker
from mds_chatbot.loaders.source import file_loader
from mds_chatbot.rag.context import ContactDetails
from mds_chatbot.rag.llm import HuggingFaceClient, OpenAICompatibleClient, build_chat_client
from mds_chatbot.rag.scoring import KeywordScorer
from mds_chatbot.rag.store import KeywordRAGStore


@lru_cache
def get_rag_store() -> KeywordRAGStore:
    chunker = TextChunker(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap)
    scorer = KeywordScorer.default(
        phrase_weight=settings.phrase_weight,
        term_weight=settings.term_weight,
        domain_weight=settings.domain_weight,
        domain_terms=settings.domain_terms,
    )
    return KeywordRAGStore(
        loader=file_loader(settings.document_path),
        chunker=chunker,
        scorer=scorer,
        default_top_k=settings.top_k,
        contact=build_contact_details(),
    )


@lru_cache
def get_conversation_store() -> ConversationStore | None:
    if not settings.conversation_db_uri:
        return None
    return ConversationStore(settings.conversation_db_uri)


def reset_caches() -> None:
    get_rag_store.cache_clear()
    get_conversation_store.cache_clear()


def build_contact_details() -> ContactDetails:
    return ContactDetails(
        organization=settings.organization_name,
        phone=settings.contact_phone,
        email=settings.contact_email,
        admissions_email=settings.admissions_email,
        website=settings.contact_website,
    )


def get_chat_client(provider: str) -> OpenAICompatibleClient | HuggingFaceClient:
    return build_chat_client(
        provider,
        openai_api_key=settings.openai_api_key,
        openai_base_url=settings.openai_base_url,
        openai_model=settings.openai_model,
        openai_temperature=settings.openai_temperature,
        openai_max_tokens=settings.openai_max_tokens,
        groq_api_key=settings.groq_api_key,
        groq_base_url=settings.groq_base_url,
        groq_models=settings.groq_models,
        huggingface_api_key=settings.huggingface_api_key,
        huggingface_base_url=settings.huggingface_base_url,
        huggingface_models=settings.huggingface_models,
        timeout=settings.llm_timeout,
    )
