"""Shared pytest fixtures for GitHub Archive loader tests."""

import gzip
import json
from pathlib import Path
from typing import Any

import pytest

from github_archive.config import StoreConfig


@pytest.fixture
def sample_push_event() -> dict[str, Any]:
    """Sample GitHub PushEvent for testing.

    Returns:
        dict: A valid PushEvent JSON structure.
    """
    return {
        "id": "12345678901",
        "type": "PushEvent",
        "actor": {
            "id": 1234567,
            "login": "testuser",
            "display_login": "testuser",
            "gravatar_id": "",
            "url": "https://api.github.com/users/testuser",
            "avatar_url": "https://avatars.githubusercontent.com/u/1234567?",
        },
        "repo": {
            "id": 9876543,
            "name": "testuser/test-repo",
            "url": "https://api.github.com/repos/testuser/test-repo",
        },
        "payload": {
            "repository_id": 9876543,
            "push_id": 11111111111,
            "ref": "refs/heads/main",
            "head": "abc123def456",
            "before": "000111222333",
        },
        "public": True,
        "created_at": "2024-01-15T10:30:00Z",
    }


@pytest.fixture
def sample_watch_event() -> dict[str, Any]:
    """Sample GitHub WatchEvent (star) for testing.

    Returns:
        dict: A valid WatchEvent JSON structure.
    """
    return {
        "id": "12345678902",
        "type": "WatchEvent",
        "actor": {
            "id": 2345678,
            "login": "stargazer",
            "display_login": "stargazer",
            "gravatar_id": "",
            "url": "https://api.github.com/users/stargazer",
            "avatar_url": "https://avatars.githubusercontent.com/u/2345678?",
        },
        "repo": {
            "id": 9876543,
            "name": "testuser/test-repo",
            "url": "https://api.github.com/repos/testuser/test-repo",
        },
        "payload": {"action": "started"},
        "public": True,
        "created_at": "2024-01-15T11:00:00Z",
    }


@pytest.fixture
def sample_pull_request_event() -> dict[str, Any]:
    """Sample GitHub PullRequestEvent owned by an organization.

    Returns:
        dict: A valid PullRequestEvent JSON structure.
    """
    return {
        "id": "12345678903",
        "type": "PullRequestEvent",
        "actor": {
            "id": 3456789,
            "login": "contributor",
            "display_login": "contributor",
            "gravatar_id": "",
            "url": "https://api.github.com/users/contributor",
            "avatar_url": "https://avatars.githubusercontent.com/u/3456789?",
        },
        "repo": {
            "id": 9876543,
            "name": "test-org/test-repo",
            "url": "https://api.github.com/repos/test-org/test-repo",
        },
        "org": {
            "id": 4567890,
            "login": "test-org",
            "gravatar_id": "",
            "url": "https://api.github.com/orgs/test-org",
            "avatar_url": "https://avatars.githubusercontent.com/u/4567890?",
        },
        "payload": {
            "action": "opened",
            "number": 42,
            "pull_request": {
                "id": 555666777,
                "number": 42,
                "state": "open",
                "title": "Add new feature",
                "body": "Line one\r\nLine two",
            },
            "labels": [{"name": "enhancement"}],
        },
        "public": True,
        "created_at": "2024-01-15T12:00:00Z",
    }


@pytest.fixture
def sample_events_jsonl(
    sample_push_event: dict[str, Any],
    sample_watch_event: dict[str, Any],
    sample_pull_request_event: dict[str, Any],
) -> str:
    """Sample newline-delimited JSON string with multiple events.

    Returns:
        str: Newline-delimited JSON string.
    """
    events = [sample_push_event, sample_watch_event, sample_pull_request_event]
    return "\n".join(json.dumps(event) for event in events)


@pytest.fixture
def sample_archive_gz(tmp_path: Path, sample_events_jsonl: str) -> Path:
    """Gzip-compressed snapshot holding the sample events.

    Returns:
        Path: Path to the ``.json.gz`` file.
    """
    path = tmp_path / "source" / "2024-01-15-10.json.gz"
    path.parent.mkdir(parents=True)
    path.write_bytes(gzip.compress(sample_events_jsonl.encode("utf-8")))
    return path


@pytest.fixture
def store_config(tmp_path: Path) -> StoreConfig:
    """Store configuration pointing at a temporary database."""
    return StoreConfig(database_path=tmp_path / "archive.db")
