"""Tests for document chunking."""

from memory_assistant.services.chunking import chunk_text


def test_short_text_is_one_chunk():
    assert chunk_text("Une seule phrase.") == ["Une seule phrase."]


def test_small_paragraphs_are_packed():
    assert chunk_text("aa\n\nbb", max_tokens=10) == ["aa\n\nbb"]


def test_paragraphs_split_when_full():
    text = "a" * 30 + "\n\n" + "b" * 30

    assert chunk_text(text, max_tokens=10) == ["a" * 30, "b" * 30]


def test_long_paragraph_split_into_sentences():
    text = "First sentence here. Second sentence here! Third one?"

    chunks = chunk_text(text, max_tokens=10)

    assert chunks == ["First sentence here.", "Second sentence here. Third one."]
    assert all(len(chunk) <= 40 for chunk in chunks)


def test_blank_paragraphs_ignored():
    assert chunk_text("\n\nbonjour\n\n\n\n", max_tokens=10) == ["bonjour"]
