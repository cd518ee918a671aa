"""Neo4j driver and schema management."""

from neo4j import AsyncDriver, AsyncGraphDatabase

from memory_assistant.core import ErrorLevel
from memory_assistant.core.config import Settings, settings
from memory_assistant.core.decorators import with_error_handling
from memory_assistant.core.logging import get_logger
from memory_assistant.infrastructure.neo4j.queries import SCHEMA_STATEMENTS

logger = get_logger(__name__)


@with_error_handling(error_level=ErrorLevel.CRITICAL)
async def create_neo4j_driver(
    config: Settings | None = None,
    max_connection_pool_size: int = 50,
    max_connection_lifetime: int = 3600,
) -> AsyncDriver:
    """Create a Neo4j driver and verify it can reach the server.

    The caller owns the driver and must close it on shutdown.
    """
    config = config or settings
    logger.info(
        "Creating Neo4j driver",
        uri=config.neo4j_uri,
        pool_size=max_connection_pool_size,
        connection_lifetime=max_connection_lifetime,
    )

    driver = AsyncGraphDatabase.driver(
        config.neo4j_uri,
        auth=(config.neo4j_user, config.neo4j_password),
        max_connection_pool_size=max_connection_pool_size,
        max_connection_lifetime=max_connection_lifetime,
    )

    # Verify connectivity before proceeding
    await driver.verify_connectivity()
    logger.info("Neo4j connection established")
    return driver


@with_error_handling(error_level=ErrorLevel.ERROR)
async def ensure_schema(driver: AsyncDriver) -> None:
    """Create uniqueness constraints and owner indexes if missing."""
    async with driver.session() as session:
        for statement in SCHEMA_STATEMENTS:
            result = await session.run(statement)
            await result.consume()
    logger.info("Neo4j schema ensured", statements=len(SCHEMA_STATEMENTS))
