"""Tests for prompt assembly from retrieved sources."""

from conftest import source

from memory_assistant.domain.models import QueryClassification, SourceType
from memory_assistant.services.context import (
    CONTEXT_HEADER,
    CONTEXT_INSTRUCTION,
    PERSONAL_HEADER,
    PERSONAL_INSTRUCTION,
    ContextAssembler,
)

PERSONAL = QueryClassification(is_personal_info=True)
NORMAL = QueryClassification()


def test_no_sources_returns_query_unchanged():
    assert ContextAssembler().assemble("Où est mon passeport ?", NORMAL, []) == "Où est mon passeport ?"


def test_blank_sources_return_query_unchanged():
    blank = source(SourceType.MEMORY, 0.9, content="   ")

    assert ContextAssembler().assemble("question", NORMAL, [blank]) == "question"


def test_normal_layout():
    sources = [
        source(SourceType.MEMORY, 0.9, content="Mon chat s'appelle Tigrou."),
        source(SourceType.CHUNK, 0.8, content="  Tigrou a quatre ans.  "),
    ]

    message = ContextAssembler().assemble("Comment s'appelle mon chat ?", NORMAL, sources)

    assert message == (
        f"{CONTEXT_HEADER}\n"
        "Mon chat s'appelle Tigrou.\n\nTigrou a quatre ans.\n\n"
        "Question: Comment s'appelle mon chat ?\n\n"
        f"{CONTEXT_INSTRUCTION}"
    )


def test_personal_layout_uses_synthesis_instruction():
    sources = [source(SourceType.MEMORY, 1.0, content="J'habite à Lyon.")]

    message = ContextAssembler().assemble("que sais-tu de moi", PERSONAL, sources)

    assert message.startswith(PERSONAL_HEADER)
    assert message.endswith(PERSONAL_INSTRUCTION)
    assert "J'habite à Lyon." in message


def test_sources_are_not_labelled():
    sources = [
        source(SourceType.MEMORY, 0.9, content="premier", id="mem-123"),
        source(SourceType.CONVERSATION, 0.6, content="second", id="msg-456"),
    ]

    message = ContextAssembler().assemble("question", NORMAL, sources)

    assert "[1]" not in message
    assert "Source:" not in message
    assert "mem-123" not in message
    assert "msg-456" not in message
    assert message.index("premier") < message.index("second")
