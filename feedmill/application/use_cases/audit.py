"""Post-commit activity logging shared by the workflows."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from feedmill.config import get_logger
from feedmill.core.interfaces.records import IActivityLog

logger = get_logger(__name__)

TransactionFactory = Callable[[], AbstractAsyncContextManager[Any]]


def default_transaction() -> AbstractAsyncContextManager[Any]:
    from feedmill.infrastructure.storage.sqlite import get_transaction

    return get_transaction()


async def record_activity(
    activity_log: IActivityLog | None,
    user_id: int | None,
    action: str,
    description: str,
) -> None:
    """
    Write an audit entry after the stock transaction has committed.

    Failures are logged and dropped: the stock mutation already happened.
    """
    try:
        if activity_log is None:
            from feedmill.infrastructure.storage.sqlite import get_activity_log

            activity_log = await get_activity_log()
        await activity_log.log(user_id, action, description)
    except Exception:
        logger.warning("activity_log_failed", action=action, user_id=user_id, exc_info=True)
