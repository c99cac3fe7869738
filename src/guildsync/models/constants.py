"""Shared constants for the models layer.

Defines enumerations used across the models, core and services layers.
Keeping them here avoids circular imports between those layers.
"""

from __future__ import annotations

from enum import StrEnum


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging and metrics.

    Attributes:
        SYNCER: The paced guild member sync
            ([Syncer][guildsync.services.syncer.Syncer]).
    """

    SYNCER = "syncer"


class UpdateOutcome(StrEnum):
    """Classification of a single remote member update.

    Every outcome counts the member as processed; none is retried.

    Attributes:
        SUCCESS: The endpoint answered ``200``.
        REJECTED: The endpoint answered ``400`` (client-side rejection).
        UNEXPECTED: The endpoint answered with any other status.
        TRANSPORT_ERROR: No usable response: connection failure, deadline
            exceeded, or an unreadable ``200`` body.
    """

    SUCCESS = "success"
    REJECTED = "rejected"
    UNEXPECTED = "unexpected"
    TRANSPORT_ERROR = "transport_error"
