"""Turn store failures into user-facing notices (or just log lines)."""

import logging
from typing import Optional

from ..errors import PermissionDenied, RelationMissing, StoreError
from .notifier import Notifier

logger = logging.getLogger(__name__)


def permission_message(action: str) -> str:
    return f"You don't have permission to {action}. Please contact the site administrator."


def network_message(action: str) -> str:
    return f"Could not {action}. Please check your connection and try again."


def report_failure(
    notifier: Optional[Notifier],
    exc: StoreError,
    action: str,
    component: str,
) -> None:
    """
    Surface a failed user-initiated action.

    RelationMissing is a provisioning problem, not something the user can act on:
    it is logged and never shown. PermissionDenied gets its own message because it
    points at a backend rule misconfiguration. Everything else reads as "not applied".
    notifier is None when the view was closed and results are being dropped.
    """
    if isinstance(exc, RelationMissing):
        logger.warning("[%s] %s: table %r missing, treating as empty: %s", component, action, exc.table, exc)
        return
    if isinstance(exc, PermissionDenied):
        logger.error("[%s] %s: permission denied on %r: %s", component, action, exc.table, exc)
        if notifier is not None:
            notifier.error(permission_message(action))
        return
    logger.warning("[%s] %s failed (%s): %s", component, action, type(exc).__name__, exc)
    if notifier is not None:
        notifier.error(network_message(action))
