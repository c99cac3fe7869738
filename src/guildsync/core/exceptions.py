"""guildsync exception hierarchy.

Exception hierarchy:

```text
SyncError (base -- never raised directly)
├── ConfigurationError      -- config validation, missing keys, bad YAML
└── DatabaseError           -- pool/store/query failures
    ├── ConnectionPoolError -- transient: pool exhausted, network blip
    └── QueryError          -- permanent: bad SQL, constraint violation
```

Remote-update failures are deliberately absent: they never leave the
updater call site and are reported as
[UpdateResult][guildsync.services.syncer.updater.UpdateResult] values.

See Also:
    [Pool][guildsync.core.pool.Pool]: Raises
        [ConnectionPoolError][guildsync.core.exceptions.ConnectionPoolError]
        and [QueryError][guildsync.core.exceptions.QueryError].
    [Syncer][guildsync.services.syncer.Syncer]: Lets every
        [DatabaseError][guildsync.core.exceptions.DatabaseError] propagate,
        which ends the run.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for all guildsync errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(SyncError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


class DatabaseError(SyncError):
    """Base for all database-related errors.

    Progress bookkeeping depends on every write landing, so any
    ``DatabaseError`` is fatal to a sync run.
    """


class ConnectionPoolError(DatabaseError):
    """Transient database error: pool exhausted, connection refused, network blip.

    Raised by [Pool][guildsync.core.pool.Pool] once its retry budget is spent.
    """


class QueryError(DatabaseError):
    """Permanent database error: bad SQL, constraint violation, data integrity.

    Callers should NOT retry -- the query itself is wrong.
    """
