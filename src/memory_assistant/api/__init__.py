"""API module."""

from fastapi import APIRouter

from .endpoints import chat, documents, memory, search

router = APIRouter()

# Include endpoint routers
router.include_router(chat.router, prefix="/chat", tags=["chat"])
router.include_router(memory.router, prefix="/memories", tags=["memories"])
router.include_router(documents.router, prefix="/documents", tags=["documents"])
router.include_router(search.router, prefix="/search", tags=["search"])
