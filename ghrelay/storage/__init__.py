"""Persistence for destinations and mention settings."""

from __future__ import annotations

from .errors import (
    DuplicateRecordError,
    RecordNotFoundError,
    TimezoneAwareRequiredError,
)
from .models import (
    Account,
    Base,
    Destination,
    MentionIdentity,
    MentionPreference,
    UTCDateTime,
    init_storage,
)
from .protocols import (
    AccountRecord,
    DestinationRecord,
    DestinationStore,
    MentionIdentityRecord,
    MentionIdentityStore,
    MentionPreferenceStore,
)
from .stores import (
    SessionFactory,
    SqlAccountStore,
    SqlDestinationStore,
    SqlMentionIdentityStore,
    SqlMentionPreferenceStore,
)

__all__ = [
    "Account",
    "AccountRecord",
    "Base",
    "Destination",
    "DestinationRecord",
    "DestinationStore",
    "DuplicateRecordError",
    "MentionIdentity",
    "MentionIdentityRecord",
    "MentionIdentityStore",
    "MentionPreference",
    "MentionPreferenceStore",
    "RecordNotFoundError",
    "SessionFactory",
    "SqlAccountStore",
    "SqlDestinationStore",
    "SqlMentionIdentityStore",
    "SqlMentionPreferenceStore",
    "TimezoneAwareRequiredError",
    "UTCDateTime",
    "init_storage",
]
