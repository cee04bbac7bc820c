"""Schema registry for GH Archive event types.

Each registered event type maps to one EventSchema: the table it is
stored in, the payload columns that follow the envelope columns, any
extra indexes, and the extraction of those columns from the payload.
Table DDL, insert statements and loader routing are all derived from
EVENT_SCHEMAS, so supporting a new event type means adding one entry.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from github_archive.config import EventType
from github_archive.registry.envelope import ENVELOPE_COLUMN_NAMES
from github_archive.registry.fields import ColumnDef, document, integer, scalar


@dataclass(frozen=True)
class EventSchema:
    """Storage shape of one event type.

    Attributes:
        table: Name of the table holding this event type.
        columns: Payload columns, stored after the envelope columns.
        extra_indexes: Column tuples to index beyond the standard set.
    """

    table: str
    columns: tuple[ColumnDef, ...] = ()
    extra_indexes: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        names = self.column_names
        if len(set(names)) != len(names):
            raise ValueError(f"{self.table}: duplicate payload column names {names}")
        clashes = set(names) & set(ENVELOPE_COLUMN_NAMES)
        if clashes:
            raise ValueError(
                f"{self.table}: payload columns clash with envelope: {sorted(clashes)}"
            )
        for index_columns in self.extra_indexes:
            unknown = set(index_columns) - set(names)
            if unknown:
                raise ValueError(
                    f"{self.table}: index on unknown columns {sorted(unknown)}"
                )

    @property
    def column_names(self) -> tuple[str, ...]:
        """Payload column names, in storage order."""
        return tuple(c.name for c in self.columns)

    def extract(self, payload: Any) -> list[Any]:
        """Map a payload object to one value per payload column.

        Never raises: a missing or non-object payload yields NULLs.

        Args:
            payload: The event's ``payload`` value.

        Returns:
            list: Values matching ``columns`` one to one.
        """
        if not isinstance(payload, dict):
            payload = {}
        return [c.extract(payload) for c in self.columns]


EVENT_SCHEMAS: Mapping[EventType, EventSchema] = MappingProxyType(
    {
        EventType.PUSH: EventSchema(
            table="push_events",
            columns=(
                integer("repository_id"),
                integer("push_id"),
                scalar("ref"),
                scalar("head"),
                scalar("before_sha", source="before"),
            ),
        ),
        EventType.PULL_REQUEST: EventSchema(
            table="pull_request_events",
            columns=(
                scalar("action"),
                integer("number"),
                document("pull_request"),
                document("label"),
                document("labels"),
                document("assignee"),
                document("assignees"),
            ),
            extra_indexes=(("action",),),
        ),
        EventType.ISSUES: EventSchema(
            table="issues_events",
            columns=(
                scalar("action"),
                document("issue"),
                document("label"),
                document("labels"),
                document("assignee"),
                document("assignees"),
            ),
            extra_indexes=(("action",),),
        ),
        EventType.ISSUE_COMMENT: EventSchema(
            table="issue_comment_events",
            columns=(scalar("action"), document("issue"), document("comment")),
        ),
        EventType.CREATE: EventSchema(
            table="create_events",
            columns=(
                scalar("ref"),
                scalar("ref_type"),
                scalar("full_ref"),
                scalar("master_branch"),
                scalar("description"),
                scalar("pusher_type"),
            ),
            extra_indexes=(("ref_type",),),
        ),
        EventType.DELETE: EventSchema(
            table="delete_events",
            columns=(
                scalar("ref"),
                scalar("ref_type"),
                scalar("full_ref"),
                scalar("pusher_type"),
            ),
        ),
        EventType.WATCH: EventSchema(
            table="watch_events",
            columns=(scalar("action"),),
        ),
        EventType.FORK: EventSchema(
            table="fork_events",
            columns=(scalar("action"), document("forkee")),
        ),
        EventType.RELEASE: EventSchema(
            table="release_events",
            columns=(scalar("action"), document("release")),
        ),
        EventType.MEMBER: EventSchema(
            table="member_events",
            columns=(scalar("action"), document("member")),
        ),
        EventType.COMMIT_COMMENT: EventSchema(
            table="commit_comment_events",
            columns=(scalar("action"), document("comment")),
        ),
        EventType.PUBLIC: EventSchema(table="public_events"),
        EventType.GOLLUM: EventSchema(
            table="gollum_events",
            columns=(document("pages"),),
        ),
        EventType.PULL_REQUEST_REVIEW: EventSchema(
            table="pull_request_review_events",
            columns=(
                scalar("action"),
                document("review"),
                document("pull_request"),
            ),
        ),
        EventType.PULL_REQUEST_REVIEW_COMMENT: EventSchema(
            table="pull_request_review_comment_events",
            columns=(
                scalar("action"),
                document("comment"),
                document("pull_request"),
            ),
        ),
        EventType.DISCUSSION: EventSchema(
            table="discussion_events",
            columns=(scalar("action"), document("discussion")),
        ),
    }
)


def _check_unique_tables(schemas: Mapping[EventType, EventSchema]) -> None:
    tables = [s.table for s in schemas.values()]
    if len(set(tables)) != len(tables):
        raise ValueError(f"Duplicate table names in registry: {tables}")


_check_unique_tables(EVENT_SCHEMAS)


def lookup_schema(
    tag: Any,
    schemas: Mapping[EventType, EventSchema] = EVENT_SCHEMAS,
) -> tuple[EventType, EventSchema] | None:
    """Find the registered schema for an event-type tag.

    Args:
        tag: The event's ``type`` value, as decoded.
        schemas: Registry to search.

    Returns:
        tuple: (event type, schema), or None if the tag is not registered.
    """
    if not isinstance(tag, str):
        return None
    try:
        event_type = EventType(tag)
    except ValueError:
        return None
    schema = schemas.get(event_type)
    if schema is None:
        return None
    return event_type, schema
