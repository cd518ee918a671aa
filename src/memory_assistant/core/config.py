"""Configuration management."""


from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from memory_assistant.domain.models.embedding import EmbeddingSpace, EmbeddingSpaceName

DEFAULT_SYSTEM_PROMPT = (
    "Tu es un assistant IA personnel qui aide l'utilisateur en utilisant ses mémoires "
    "et documents personnels. Réponds de manière naturelle et utile."
)


class RetrievalSettings(BaseModel):
    """Thresholds and caps for the tiered similarity search."""

    personal_threshold: float = Field(default=0.1, description="Similarity floor for personal-info queries")
    personal_limit: int = Field(default=20, description="Per-collection cap for personal-info queries")
    normal_threshold: float = Field(default=0.6, description="Similarity floor for ordinary queries")
    normal_limit: int = Field(default=5, description="Per-collection cap for ordinary queries")

    conversation_threshold: float = Field(default=0.5, description="Similarity floor for past conversation turns")
    conversation_limit: int = Field(default=5, description="Cap on past conversation turns")

    personal_fallback_limit: int = Field(default=20, description="Recent memories listed when nothing matched")
    fallback_threshold: float = Field(default=0.3, description="Relaxed floor for the ordinary-query retry")
    fallback_limit: int = Field(default=3, description="Per-collection cap for the ordinary-query retry")

    max_sources_personal: int = Field(default=25, description="Merged sources kept for personal-info queries")
    max_sources_normal: int = Field(default=8, description="Merged sources kept for ordinary queries")


class ChatDefaults(BaseModel):
    """Chat parameters used when a request does not override them."""

    model: str = "gpt-4o"
    embedding_space: EmbeddingSpaceName = Field(default=EmbeddingSpace.SMALL, description="'small' or 'large' embedding space")
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = 0.7
    top_p: float = 1.0
    max_tokens: int = 2000


class Settings(BaseSettings):
    # API Keys
    openai_api_key: str = ""

    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"

    # Auth
    jwt_secret_key: str = Field(default="change-me", description="HMAC key for bearer tokens")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # App config
    debug: bool = True
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Provider timeouts, in seconds
    embedding_timeout: float = 30.0
    generation_timeout: float = 60.0

    # Number of past messages replayed to the model
    history_window: int = 10

    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    chat: ChatDefaults = Field(default_factory=ChatDefaults)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
        env_nested_delimiter="__",  # Allows RETRIEVAL__NORMAL_THRESHOLD=0.55
    )


settings = Settings()
