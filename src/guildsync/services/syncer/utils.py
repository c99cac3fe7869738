"""Event reporting helpers for the syncer.

See Also:
    [Syncer][guildsync.services.syncer.Syncer]: Calls
        [report_update][guildsync.services.syncer.utils.report_update]
        after every member update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from guildsync.models.constants import UpdateOutcome


if TYPE_CHECKING:
    from guildsync.core.logger import Logger

    from .updater import UpdateResult


def report_update(logger: Logger, result: UpdateResult) -> None:
    """Log one update result at the level its outcome calls for.

    ``SUCCESS`` is info with the full response body, never clipped. ``REJECTED`` is an
    error carrying the member and guild. ``UNEXPECTED`` is an error with
    the status only. ``TRANSPORT_ERROR`` is an error with the raw error.
    """
    if result.outcome is UpdateOutcome.SUCCESS:
        logger.with_value_limit(None).info(
            "member_updated",
            guild_id=result.guild_id,
            discord_user_id=result.discord_user_id,
            status=result.status,
            reason=result.reason,
            body=result.body,
            duration=round(result.duration, 3),
        )
    elif result.outcome is UpdateOutcome.REJECTED:
        logger.error(
            "member_update_rejected",
            status=result.status,
            reason=result.reason,
            discord_user_id=result.discord_user_id,
            guild_id=result.guild_id,
        )
    elif result.outcome is UpdateOutcome.UNEXPECTED:
        logger.error(
            "member_update_unexpected_status",
            status=result.status,
            reason=result.reason,
        )
    else:
        logger.error(
            "member_update_failed",
            guild_id=result.guild_id,
            discord_user_id=result.discord_user_id,
            error=result.error,
            error_type=result.error_type,
        )
