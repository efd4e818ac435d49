"""Backing logic: store clients, identity, engines, view state."""

from .activity import ActivityService, AuthorStats
from .binary_engine import BinaryEngagementEngine, BinaryOutcome
from .comment_engine import CommentEngine
from .firestore_store_client import FirestoreStoreClient
from .identity import (
    FirebaseIdentityProvider,
    HeaderIdentityProvider,
    IdentityProvider,
    StaticIdentityProvider,
)
from .notifier import Notice, Notifier
from .operation_guard import OperationGuard, OperationToken
from .panel import EngagementPanel
from .reaction_engine import ReactionEngine, ReactionOutcome, count_by_kind
from .reconciler import CounterReconciler, ReconcileResult
from .store_client import EngagementStoreClient, InMemoryStoreClient
from .view_state import BinaryMirror, CommentEntry, ContentItemView

__all__ = [
    "ActivityService",
    "AuthorStats",
    "BinaryEngagementEngine",
    "BinaryOutcome",
    "CommentEngine",
    "FirestoreStoreClient",
    "FirebaseIdentityProvider",
    "HeaderIdentityProvider",
    "IdentityProvider",
    "StaticIdentityProvider",
    "Notice",
    "Notifier",
    "OperationGuard",
    "OperationToken",
    "EngagementPanel",
    "ReactionEngine",
    "ReactionOutcome",
    "count_by_kind",
    "CounterReconciler",
    "ReconcileResult",
    "EngagementStoreClient",
    "InMemoryStoreClient",
    "BinaryMirror",
    "CommentEntry",
    "ContentItemView",
]
