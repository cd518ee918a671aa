"""Core API endpoints."""

from fastapi import APIRouter

from memory_assistant import __version__
from memory_assistant.api import dependencies
from memory_assistant.domain.models.utils import utc_now

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with application status."""
    return {
        "message": "Memory Assistant API",
        "version": __version__,
        "status": "running",
    }


@router.get("/health", operation_id="health")
async def health_check():
    """Health check endpoint."""
    ready = dependencies.store is not None and dependencies.embedding_gateway is not None
    breaker = getattr(dependencies.embedding_gateway, "circuit_breaker", None)
    return {
        "status": "healthy" if ready else "starting",
        "timestamp": utc_now().isoformat(),
        "circuits": [breaker.get_state()] if breaker is not None else [],
    }
