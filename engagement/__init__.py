"""
Engagement Service

Reactions, likes, bookmarks and comments on content items, kept consistent over a
store that offers no transactions.

Usage: uvicorn engagement:app --reload --port 8000
"""

from .app import app
from .config import EngagementConfig, get_config, reload_config
from .errors import (
    AuthRequired,
    DuplicateKey,
    EngagementError,
    NetworkError,
    PermissionDenied,
    RelationMissing,
    StoreError,
    ValidationError,
)
from .services import ContentItemView, EngagementPanel, InMemoryStoreClient

__all__ = [
    "app",
    "EngagementConfig",
    "get_config",
    "reload_config",
    "AuthRequired",
    "DuplicateKey",
    "EngagementError",
    "NetworkError",
    "PermissionDenied",
    "RelationMissing",
    "StoreError",
    "ValidationError",
    "ContentItemView",
    "EngagementPanel",
    "InMemoryStoreClient",
]
