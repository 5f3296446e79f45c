from __future__ import annotations

"""Prompt-context assembly and the no-information fallback message."""

from dataclasses import dataclass

from mds_chatbot.rag.types import DocumentChunk


@dataclass(frozen=True)
class ContactDetails:
    """Where users are sent when the documents do not cover a question."""
    organization: str = "Abu Rayyan Academy"
    phone: str = "+974 XXXX XXXX (Main Office)"
    email: str = "info@aburayyanacademy.edu.qa"
    admissions_email: str = "admissions@aburayyanacademy.edu.qa"
    website: str = "www.aburayyanacademy.edu.qa"
    office_hours: str = "Sunday - Thursday, 8:00 AM - 4:00 PM"

    def fallback_message(self) -> str:
        return (
            "I don't have specific information about that topic readily available at the moment.\n\n"
            f"For more detailed information, please contact {self.organization} directly:\n"
            f"Phone: {self.phone}\n"
            f"Email: {self.email}\n"
            f"Admissions: {self.admissions_email}"
        )

    def contact_info(self) -> str:
        return (
            f"For more detailed information, please contact {self.organization} directly:\n\n"
            f"**Phone**: {self.phone}\n"
            f"**Email**: {self.email}\n"
            f"**Admissions Office**: {self.admissions_email}\n"
            f"**Website**: {self.website}\n\n"
            "Our staff is available to assist you with:\n"
            "- Detailed program information\n"
            "- Admission procedures and requirements\n"
            "- Campus tours and visits\n"
            "- Financial aid and scholarship opportunities\n"
            "- Academic counseling\n\n"
            f"**Office Hours**: {self.office_hours}"
        )


DEFAULT_CONTACT = ContactDetails()


def assemble_context(
    chunks: list[DocumentChunk],
    *,
    fallback: str | None = None,
    labeled: bool = False,
) -> str:
    """Join chunk contents in rank order, or return the fallback message.

    Overlapping neighbours are not deduplicated, so boundary text may repeat.
    """
    fallback_text = fallback or DEFAULT_CONTACT.fallback_message()
    blocks: list[str] = []
    for rank, chunk in enumerate(chunks, start=1):
        content = chunk.content.strip()
        if not content:
            continue
        if labeled:
            meta = chunk.metadata
            header = (
                f"Excerpt {rank} ({meta.source}, chunk "
                f"{meta.chunk_index + 1}/{meta.total_chunks}):"
            )
            content = f"{header}\n{content}"
        blocks.append(content)
    if not blocks:
        return fallback_text
    return "\n\n".join(blocks)
