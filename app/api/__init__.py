"""API routes."""

from .sync import router as sync_router
from .folders import router as folders_router
from .files import router as files_router
from .trash import router as trash_router

__all__ = [
    "sync_router",
    "folders_router",
    "files_router",
    "trash_router",
]
