"""Schema registry for the GitHub Archive loader.

The registry is the single description of how each event type is
stored; the store and the loader are generated from it.
"""

from github_archive.registry.envelope import (
    ENVELOPE_COLUMN_NAMES,
    ENVELOPE_COLUMNS,
    KNOWN_EVENT_KEYS,
    Envelope,
    partition_event_keys,
)
from github_archive.registry.event_schemas import (
    EVENT_SCHEMAS,
    EventSchema,
    lookup_schema,
)
from github_archive.registry.fields import ColumnDef

__all__ = [
    "ColumnDef",
    "ENVELOPE_COLUMNS",
    "ENVELOPE_COLUMN_NAMES",
    "EVENT_SCHEMAS",
    "Envelope",
    "EventSchema",
    "KNOWN_EVENT_KEYS",
    "lookup_schema",
    "partition_event_keys",
]
