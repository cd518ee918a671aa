"""Embedding values and the spaces they live in."""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field


class EmbeddingSpace(str, Enum):
    """Embedding model family a vector belongs to.

    Vectors from different spaces are never compared with each other.
    """

    SMALL = "small"
    LARGE = "large"

    @property
    def model_name(self) -> str:
        return {
            EmbeddingSpace.SMALL: "text-embedding-3-small",
            EmbeddingSpace.LARGE: "text-embedding-3-large",
        }[self]

    @property
    def dimensions(self) -> int:
        return {
            EmbeddingSpace.SMALL: 1536,
            EmbeddingSpace.LARGE: 3072,
        }[self]

    @classmethod
    def from_model_name(cls, model_name: str) -> "EmbeddingSpace":
        """Map a provider model name (or a bare space name) to its space."""
        for space in cls:
            if model_name in (space.value, space.model_name):
                return space
        raise ValueError(f"Unknown embedding model: {model_name}")


class Embedding(BaseModel):
    """A vector together with the space it was produced in."""

    vector: list[float]
    space: EmbeddingSpace = EmbeddingSpace.SMALL

    @property
    def model_name(self) -> str:
        return self.space.model_name



def _coerce_space(value: Any) -> Any:
    if isinstance(value, str) and not isinstance(value, EmbeddingSpace):
        return EmbeddingSpace.from_model_name(value)
    return value


# Accepts "small"/"large" or a provider model name; anything else fails validation
EmbeddingSpaceName = Annotated[EmbeddingSpace, BeforeValidator(_coerce_space)]
