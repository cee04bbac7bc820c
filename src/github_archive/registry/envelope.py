"""Envelope extraction: the columns every event table shares.

Top-level keys of an event fall into exactly one of two groups. Known
keys (identity, timestamp, actor, repo, org, type, payload) map onto
fixed columns; any other key lands in the residual bag that is stored
as JSON in the ``other`` column. New upstream fields are therefore kept
without touching the registry.
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Integer, Text

from github_archive.registry.fields import ColumnDef, to_json, to_scalar, to_text

KNOWN_EVENT_KEYS = frozenset(
    {"id", "type", "public", "created_at", "actor", "repo", "org", "payload"}
)

ENVELOPE_COLUMNS: tuple[ColumnDef, ...] = (
    ColumnDef("id", Text, primary_key=True),
    ColumnDef("created_at", Text, nullable=False),
    ColumnDef("public", Integer, nullable=False, server_default="1"),
    ColumnDef("actor_id", Integer, source="id"),
    ColumnDef("actor_login", Text, source="login"),
    ColumnDef("actor_display_login", Text, source="display_login"),
    ColumnDef("actor_gravatar_id", Text, source="gravatar_id"),
    ColumnDef("actor_avatar_url", Text, source="avatar_url"),
    ColumnDef("actor_url", Text, source="url"),
    ColumnDef("repo_id", Integer, source="id"),
    ColumnDef("repo_name", Text, source="name"),
    ColumnDef("repo_url", Text, source="url"),
    ColumnDef("org_id", Integer, source="id"),
    ColumnDef("org_login", Text, source="login"),
    ColumnDef("org_gravatar_id", Text, source="gravatar_id"),
    ColumnDef("org_avatar_url", Text, source="avatar_url"),
    ColumnDef("org_url", Text, source="url"),
    ColumnDef("other", Text),
)

ENVELOPE_COLUMN_NAMES: tuple[str, ...] = tuple(c.name for c in ENVELOPE_COLUMNS)

_ACTOR_COLUMNS = ENVELOPE_COLUMNS[3:9]
_REPO_COLUMNS = ENVELOPE_COLUMNS[9:12]
_ORG_COLUMNS = ENVELOPE_COLUMNS[12:17]


def partition_event_keys(
    event: dict[str, Any],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split an event's top-level keys into known fields and the residual bag.

    Args:
        event: Decoded event record.

    Returns:
        tuple: (known fields, unrecognized fields). Every key of ``event``
        appears in exactly one of the two.
    """
    known: dict[str, Any] = {}
    residual: dict[str, Any] = {}
    for key, value in event.items():
        if key in KNOWN_EVENT_KEYS:
            known[key] = value
        else:
            residual[key] = value
    return known, residual


def _sub_object(known: dict[str, Any], key: str) -> dict[str, Any]:
    value = known.get(key)
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class Envelope:
    """The fields common to every event, plus the residual bag.

    Attributes:
        id: Event identifier (primary key).
        created_at: Creation timestamp as sent upstream.
        public: 0 only when the event is explicitly non-public.
        actor: Values for the actor_* columns, in column order.
        repo: Values for the repo_* columns, in column order.
        org: Values for the org_* columns, in column order.
        other: Top-level keys outside the known set.
    """

    id: str | None
    created_at: Any
    public: int
    actor: tuple[Any, ...]
    repo: tuple[Any, ...]
    org: tuple[Any, ...]
    other: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> "Envelope":
        """Extract the envelope from a decoded event.

        Missing or malformed actor/repo/org objects degrade to NULL columns.

        Args:
            event: Decoded event record.

        Returns:
            Envelope: The extracted envelope.
        """
        known, residual = partition_event_keys(event)
        actor = _sub_object(known, "actor")
        repo = _sub_object(known, "repo")
        org = _sub_object(known, "org")
        event_id = known.get("id")
        return cls(
            id=None if event_id is None else to_text(str(event_id)),
            created_at=to_scalar(known.get("created_at")),
            public=0 if known.get("public") is False else 1,
            actor=tuple(c.extract(actor) for c in _ACTOR_COLUMNS),
            repo=tuple(c.extract(repo) for c in _REPO_COLUMNS),
            org=tuple(c.extract(org) for c in _ORG_COLUMNS),
            other=residual,
        )

    def values(self) -> list[Any]:
        """Return the envelope as storage values in ENVELOPE_COLUMNS order."""
        return [
            self.id,
            self.created_at,
            self.public,
            *self.actor,
            *self.repo,
            *self.org,
            to_json(self.other) if self.other else None,
        ]
