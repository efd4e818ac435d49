"""Application state: store client, identity factory, and open content item views."""

import logging
import time
from collections import OrderedDict
from typing import Callable, Dict, List, Mapping, Optional

from .config import EngagementConfig, get_config
from .services import (
    ContentItemView,
    EngagementPanel,
    EngagementStoreClient,
    FirebaseIdentityProvider,
    FirestoreStoreClient,
    HeaderIdentityProvider,
    IdentityProvider,
    InMemoryStoreClient,
)
from .services.firebase_app import ensure_firebase_app

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(
        self,
        config: EngagementConfig,
        store: Optional[EngagementStoreClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self._clock = clock

        self.store = store if store is not None else self._create_store(config)
        logger.info("[startup] Store client: %s", type(self.store).__name__)

        if config.auth_mode == "firebase":
            ensure_firebase_app(config.firebase_project_id, config.firebase_credentials_path)
        logger.info("[startup] Identity: %s", config.auth_mode)

        # Open views by view_id (one per browser tab showing a content item),
        # least recently used first
        self.views: "OrderedDict[str, ContentItemView]" = OrderedDict()
        self._last_access: Dict[str, float] = {}

    def _create_store(self, config: EngagementConfig) -> EngagementStoreClient:
        """Create the store client (Firestore when configured, else in-memory)."""
        if config.store_backend == "firestore":
            return FirestoreStoreClient(
                project_id=config.firebase_project_id,
                credentials_path=config.firebase_credentials_path,
            )
        return InMemoryStoreClient()

    def identity_for(self, headers: Mapping[str, str]) -> IdentityProvider:
        """Identity provider for one request."""
        if self.config.auth_mode == "firebase":
            return FirebaseIdentityProvider(headers, login_url=self.config.login_url)
        return HeaderIdentityProvider(headers, login_url=self.config.login_url)

    def open_view(self, content_item_id: str, content_kind) -> ContentItemView:
        view = ContentItemView(
            content_item_id,
            content_kind,
            notice_ttl=self.config.notice_ttl_seconds,
        )
        self.evict_idle()
        self.views[view.view_id] = view
        self._last_access[view.view_id] = self._clock()
        self._enforce_cap()
        return view

    def get_view(self, view_id: str) -> Optional[ContentItemView]:
        """Look up an open view and mark it used. Idle views are evicted first."""
        self.evict_idle()
        view = self.views.get(view_id)
        if view is not None:
            self.views.move_to_end(view_id)
            self._last_access[view_id] = self._clock()
        return view

    def evict_idle(self) -> List[str]:
        """Unmount and drop views unused for view_idle_seconds or more."""
        cutoff = self._clock() - self.config.view_idle_seconds
        idle = [view_id for view_id in self.views if self._last_access.get(view_id, cutoff) <= cutoff]
        for view_id in idle:
            self.close_view(view_id)
        if idle:
            logger.info("[views] evicted %d idle view(s)", len(idle))
        return idle

    def _enforce_cap(self) -> None:
        while len(self.views) > self.config.max_open_views:
            view_id = next(iter(self.views))
            self.close_view(view_id)
            logger.info("[views] evicted %s (over max_open_views=%d)", view_id, self.config.max_open_views)

    def close_view(self, view_id: str) -> Optional[ContentItemView]:
        view = self.views.pop(view_id, None)
        self._last_access.pop(view_id, None)
        if view is not None:
            view.unmount()
        return view

    def panel(self, view: ContentItemView, identity: IdentityProvider) -> EngagementPanel:
        return EngagementPanel(
            self.store,
            identity,
            view,
            comment_max_length=self.config.comment_max_length,
            reconcile_on_refresh=self.config.reconcile_on_refresh,
        )


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (tests, or an app built around a custom store)."""
    global _state
    _state = state
