"""Renders retrieved sources into the user message sent for generation."""

from memory_assistant.domain.models import QueryClassification, RetrievedSource

PERSONAL_HEADER = "Informations personnelles disponibles:"
PERSONAL_INSTRUCTION = (
    "Synthétise TOUTES les informations ci-dessus de manière complète pour répondre à la question. "
    "Ne mentionne jamais de sources, de références ou d'identifiants dans ta réponse."
)

CONTEXT_HEADER = "Contexte disponible:"
CONTEXT_INSTRUCTION = (
    "Utilise ce contexte s'il est pertinent pour répondre à la question. "
    "Ne mentionne jamais de sources, de références ou d'identifiants dans ta réponse."
)


class ContextAssembler:
    """Packs source contents into a single prompt.

    Contents are separated by blank lines only: no numbering, no labels and
    no ids, so the model has nothing to cite.
    """

    def assemble(
        self,
        query: str,
        classification: QueryClassification,
        sources: list[RetrievedSource],
    ) -> str:
        if not sources:
            return query

        joined = "\n\n".join(source.content.strip() for source in sources if source.content.strip())
        if not joined:
            return query

        if classification.is_personal_info:
            header, instruction = PERSONAL_HEADER, PERSONAL_INSTRUCTION
        else:
            header, instruction = CONTEXT_HEADER, CONTEXT_INSTRUCTION

        return f"{header}\n{joined}\n\nQuestion: {query}\n\n{instruction}"
