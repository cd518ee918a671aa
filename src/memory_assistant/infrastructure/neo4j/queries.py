"""Cypher queries for the memory assistant.

Every query that reads or writes user data matches on ``owner_id``. Node
properties holding vectors are chosen from :data:`EMBEDDING_PROPERTIES`,
never from user input.
"""

from typing import LiteralString, cast

from memory_assistant.domain.models import Collection, EmbeddingSpace

EMBEDDING_PROPERTIES: dict[EmbeddingSpace, str] = {
    EmbeddingSpace.SMALL: "embedding_small",
    EmbeddingSpace.LARGE: "embedding_large",
}

# Owner-scoped MATCH pattern per searchable collection; the searched node is bound to `node`
COLLECTION_PATTERNS: dict[Collection, str] = {
    Collection.MEMORIES: "(node:Memory {owner_id: $owner_id})",
    Collection.CHUNKS: "(:Document {owner_id: $owner_id})-[:HAS_CHUNK]->(node:Chunk)",
    Collection.CONVERSATIONS: "(:Conversation {owner_id: $owner_id})-[:HAS_MESSAGE]->(node:ConversationMessage)",
}

SET_EMBEDDINGS = """
    SET {alias}.embedding_small = $embedding_small,
        {alias}.embedding_large = $embedding_large,
        {alias}.embedding_model = $embedding_model
"""


def _cosine(prop: str) -> str:
    return f"""
        reduce(dot = 0.0, i IN range(0, size($embedding)-1) |
               dot + node.{prop}[i] * $embedding[i]) /
        (sqrt(reduce(sum = 0.0, i IN range(0, size(node.{prop})-1) |
               sum + node.{prop}[i] * node.{prop}[i])) *
         sqrt(reduce(sum = 0.0, i IN range(0, size($embedding)-1) |
               sum + $embedding[i] * $embedding[i])))
    """


class SearchQueries:
    """Similarity search and listing across collections."""

    @staticmethod
    def similarity_search(collection: Collection, space: EmbeddingSpace) -> LiteralString:
        """Brute-force cosine similarity within one owner's collection.

        Params: owner_id, embedding, threshold, limit
        """
        prop = EMBEDDING_PROPERTIES[space]
        query = f"""
            MATCH {COLLECTION_PATTERNS[collection]}
            WHERE node.{prop} IS NOT NULL AND size(node.{prop}) = size($embedding)
            WITH node, {_cosine(prop)} AS similarity
            WHERE similarity >= $threshold
            RETURN node.id AS id, node.content AS content, similarity
            ORDER BY similarity DESC
            LIMIT $limit
        """
        return cast(LiteralString, query)

    @staticmethod
    def list_recent(collection: Collection) -> LiteralString:
        """Params: owner_id, limit"""
        query = f"""
            MATCH {COLLECTION_PATTERNS[collection]}
            RETURN node.id AS id, node.content AS content, 1.0 AS similarity
            ORDER BY node.created_at DESC
            LIMIT $limit
        """
        return cast(LiteralString, query)

    @staticmethod
    def count(collection: Collection) -> LiteralString:
        """Params: owner_id"""
        query = f"""
            MATCH {COLLECTION_PATTERNS[collection]}
            RETURN count(node) AS total
        """
        return cast(LiteralString, query)


class MemoryQueries:
    """Memory CRUD."""

    PROJECTION: LiteralString = (
        "m {.id, .owner_id, .content, .created_at, .updated_at, "
        ".embedding_small, .embedding_large, .embedding_model} AS m"
    )

    @staticmethod
    def create() -> LiteralString:
        query = f"""
            CREATE (m:Memory {{
                id: $id,
                owner_id: $owner_id,
                content: $content,
                created_at: $created_at,
                updated_at: $updated_at
            }})
            {SET_EMBEDDINGS.format(alias="m")}
            RETURN {MemoryQueries.PROJECTION}
        """
        return cast(LiteralString, query)

    @staticmethod
    def list_for_owner() -> LiteralString:
        """Newest first, without vectors."""
        return """
            MATCH (m:Memory {owner_id: $owner_id})
            RETURN m {.id, .owner_id, .content, .created_at, .updated_at} AS m
            ORDER BY m.created_at DESC
            SKIP $offset LIMIT $limit
        """

    @staticmethod
    def get_by_id() -> LiteralString:
        query = f"""
            MATCH (m:Memory {{id: $id, owner_id: $owner_id}})
            RETURN {MemoryQueries.PROJECTION}
        """
        return cast(LiteralString, query)

    @staticmethod
    def update() -> LiteralString:
        """Replace content and vector. The slot of the other space is removed."""
        query = f"""
            MATCH (m:Memory {{id: $id, owner_id: $owner_id}})
            SET m.content = $content, m.updated_at = $updated_at
            {SET_EMBEDDINGS.format(alias="m")}
            RETURN {MemoryQueries.PROJECTION}
        """
        return cast(LiteralString, query)

    @staticmethod
    def delete() -> LiteralString:
        return """
            MATCH (m:Memory {id: $id, owner_id: $owner_id})
            DETACH DELETE m
            RETURN count(*) AS deleted
        """


class DocumentQueries:
    """Documents and their chunks."""

    @staticmethod
    def create() -> LiteralString:
        return """
            CREATE (d:Document {
                id: $id,
                owner_id: $owner_id,
                title: $title,
                file_type: $file_type,
                preview: $preview,
                created_at: $created_at
            })
            RETURN d.id AS id
        """

    @staticmethod
    def add_chunk() -> LiteralString:
        query = f"""
            MATCH (d:Document {{id: $document_id, owner_id: $owner_id}})
            CREATE (d)-[:HAS_CHUNK]->(c:Chunk {{
                id: $id,
                document_id: $document_id,
                content: $content,
                token_count: $token_count,
                chunk_index: $chunk_index,
                created_at: $created_at
            }})
            {SET_EMBEDDINGS.format(alias="c")}
            RETURN c.id AS id
        """
        return cast(LiteralString, query)

    @staticmethod
    def list_for_owner() -> LiteralString:
        return """
            MATCH (d:Document {owner_id: $owner_id})
            RETURN d {.id, .owner_id, .title, .file_type, .preview, .created_at} AS d
            ORDER BY d.created_at DESC
        """

    @staticmethod
    def delete() -> LiteralString:
        """Deletes the document and all of its chunks."""
        return """
            MATCH (d:Document {id: $id, owner_id: $owner_id})
            OPTIONAL MATCH (d)-[:HAS_CHUNK]->(c:Chunk)
            WITH d, collect(c) AS chunks
            FOREACH (chunk IN chunks | DETACH DELETE chunk)
            DETACH DELETE d
            RETURN count(*) AS deleted
        """


class ConversationQueries:
    """Conversations and their append-only messages."""

    @staticmethod
    def create() -> LiteralString:
        return """
            CREATE (c:Conversation {
                id: $id,
                owner_id: $owner_id,
                title: $title,
                created_at: $created_at,
                updated_at: $updated_at
            })
            RETURN c.id AS id
        """

    @staticmethod
    def get_by_id() -> LiteralString:
        return """
            MATCH (c:Conversation {id: $id, owner_id: $owner_id})
            RETURN c {.id, .owner_id, .title, .created_at, .updated_at} AS c
        """

    @staticmethod
    def recent_messages() -> LiteralString:
        """Newest first. Params: owner_id, conversation_id, limit"""
        return """
            MATCH (:Conversation {id: $conversation_id, owner_id: $owner_id})-[:HAS_MESSAGE]->(m:ConversationMessage)
            RETURN m {.id, .conversation_id, .role, .content, .created_at} AS m
            ORDER BY m.created_at DESC
            LIMIT $limit
        """

    @staticmethod
    def save_message() -> LiteralString:
        query = f"""
            MATCH (c:Conversation {{id: $conversation_id, owner_id: $owner_id}})
            CREATE (c)-[:HAS_MESSAGE]->(m:ConversationMessage {{
                id: $id,
                conversation_id: $conversation_id,
                role: $role,
                content: $content,
                created_at: $created_at
            }})
            {SET_EMBEDDINGS.format(alias="m")}
            SET c.updated_at = $created_at
            RETURN m.id AS id
        """
        return cast(LiteralString, query)


class UsageQueries:
    @staticmethod
    def record() -> LiteralString:
        return """
            CREATE (u:UsageRecord {owner_id: $owner_id})
            SET u += $properties
            RETURN u.owner_id AS owner_id
        """


SCHEMA_STATEMENTS: list[LiteralString] = [
    "CREATE CONSTRAINT memory_id IF NOT EXISTS FOR (m:Memory) REQUIRE m.id IS UNIQUE",
    "CREATE CONSTRAINT document_id IF NOT EXISTS FOR (d:Document) REQUIRE d.id IS UNIQUE",
    "CREATE CONSTRAINT chunk_id IF NOT EXISTS FOR (c:Chunk) REQUIRE c.id IS UNIQUE",
    "CREATE CONSTRAINT conversation_id IF NOT EXISTS FOR (c:Conversation) REQUIRE c.id IS UNIQUE",
    "CREATE CONSTRAINT message_id IF NOT EXISTS FOR (m:ConversationMessage) REQUIRE m.id IS UNIQUE",
    "CREATE INDEX memory_owner IF NOT EXISTS FOR (m:Memory) ON (m.owner_id)",
    "CREATE INDEX document_owner IF NOT EXISTS FOR (d:Document) ON (d.owner_id)",
    "CREATE INDEX conversation_owner IF NOT EXISTS FOR (c:Conversation) ON (c.owner_id)",
    "CREATE INDEX usage_owner IF NOT EXISTS FOR (u:UsageRecord) ON (u.owner_id)",
]
