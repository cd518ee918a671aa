"""Splits document text into embedding-sized chunks."""

import re

from memory_assistant.services.usage import CHARS_PER_TOKEN

_SENTENCE_END = re.compile(r"[.!?]+")


def chunk_text(text: str, max_tokens: int = 400) -> list[str]:
    """Split ``text`` into chunks of roughly ``max_tokens`` tokens.

    Paragraphs (blank-line separated) are packed together while they fit.
    A paragraph too long on its own is broken into sentences, each ending
    with a period, which are packed the same way.
    """
    max_chars = max_tokens * CHARS_PER_TOKEN
    chunks: list[str] = []
    current = ""

    def flush() -> None:
        if current.strip():
            chunks.append(current.strip())

    for paragraph in (p for p in text.split("\n\n") if p.strip()):
        if len(paragraph) > max_chars:
            flush()
            current = ""
            for sentence in (s for s in _SENTENCE_END.split(paragraph) if s.strip()):
                sentence = sentence.strip() + "."
                if len(current) + len(sentence) > max_chars:
                    flush()
                    current = sentence
                else:
                    current = f"{current} {sentence}" if current else sentence
        elif len(current) + len(paragraph) + 2 > max_chars:
            flush()
            current = paragraph
        else:
            current = f"{current}\n\n{paragraph}" if current else paragraph

    flush()
    return chunks or [text]
