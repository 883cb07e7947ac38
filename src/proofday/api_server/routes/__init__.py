# src/proofday/api_server/routes/__init__.py
"""
API routes package initialization.

Exports the routers registered by ``api_server.main`` under ``/api/v1``.
"""

from .diagnostics import router as diagnostics_router
from .feed import router as feed_router
from .goals import router as goals_router
from .users import router as users_router

__all__ = [
    "diagnostics_router",
    "feed_router",
    "goals_router",
    "users_router",
]
