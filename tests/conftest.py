"""Pytest fixtures for Claude Lessons tests."""

import json
import os
from datetime import datetime, timedelta, timezone

import pytest

from claude_lessons.models import Message, MessageKind


def write_jsonl(path, records, extra_lines=()):
    """Write records as JSON lines, followed by any raw extra lines."""
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record) + "\n")
        for line in extra_lines:
            f.write(line + "\n")


def set_mtime(path, when: datetime):
    """Set a file's modification time."""
    ts = when.timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def temp_claude_dir(tmp_path):
    """Create a temporary ~/.claude directory structure."""
    claude_dir = tmp_path / ".claude"
    projects_dir = claude_dir / "projects"
    projects_dir.mkdir(parents=True)
    return claude_dir


@pytest.fixture
def projects_dir(temp_claude_dir):
    """The temporary projects directory."""
    return temp_claude_dir / "projects"


@pytest.fixture
def sample_project(projects_dir):
    """Create a sample project with two sessions."""
    project_dir = projects_dir / "-Users-test-myproject"
    project_dir.mkdir(parents=True)

    # Stored out of timestamp order on purpose
    messages_001 = [
        {
            "type": "assistant",
            "uuid": "msg-002",
            "parentUuid": "msg-001",
            "sessionId": "session-001",
            "timestamp": "2024-02-01T10:00:20Z",
            "cwd": "/Users/test/myproject",
            "message": {
                "role": "assistant",
                "content": [
                    {"type": "text", "text": "I'll help you fix the auth bug. Let me check the code."},
                    {"type": "tool_use", "id": "tool-1", "name": "Read", "input": {"path": "auth.py"}},
                ],
            },
        },
        {
            "type": "user",
            "uuid": "msg-001",
            "parentUuid": None,
            "sessionId": "session-001",
            "timestamp": "2024-02-01T10:00:10Z",
            "cwd": "/Users/test/myproject",
            "gitBranch": "main",
            "version": "1.0.80",
            "message": {"role": "user", "content": "Help me fix a bug in the authentication module"},
        },
        {
            "type": "user",
            "uuid": "msg-003",
            "parentUuid": "msg-002",
            "sessionId": "session-001",
            "timestamp": "2024-02-01T10:00:30Z",
            "cwd": "/Users/test/myproject",
            "message": {"role": "user", "content": "Don't change the tests, fix the login function instead"},
        },
        {
            "type": "assistant",
            "uuid": "msg-004",
            "parentUuid": "msg-003",
            "sessionId": "session-001",
            "timestamp": "2024-02-01T10:00:40Z",
            "cwd": "/Users/test/myproject",
            "message": {
                "role": "assistant",
                "content": [{"type": "text", "text": "The validate_token function was not returning the user."}],
            },
        },
        {"type": "file-history-snapshot", "messageId": "snap-1"},
    ]
    write_jsonl(project_dir / "session-001.jsonl", messages_001, extra_lines=['{"type": "user", "uuid": '])

    messages_002 = [
        {
            "type": "summary",
            "summary": "JWT authentication setup",
            "leafUuid": "msg-006",
        },
        {
            "type": "user",
            "uuid": "msg-005",
            "sessionId": "session-002",
            "timestamp": "2024-02-02T09:00:00Z",
            "cwd": "/Users/test/myproject",
            "message": {"role": "user", "content": "Add JWT authentication to the API"},
        },
        {
            "type": "assistant",
            "uuid": "msg-006",
            "parentUuid": "msg-005",
            "sessionId": "session-002",
            "timestamp": "2024-02-02T09:00:10Z",
            "cwd": "/Users/test/myproject",
            "message": {
                "role": "assistant",
                "content": [{"type": "text", "text": "I'll implement JWT authentication with PyJWT."}],
            },
        },
    ]
    write_jsonl(project_dir / "session-002.jsonl", messages_002)

    now = datetime.now()
    set_mtime(project_dir / "session-001.jsonl", now - timedelta(days=2))
    set_mtime(project_dir / "session-002.jsonl", now - timedelta(hours=1))
    return project_dir


@pytest.fixture
def make_message():
    """Factory for Message objects with sensible defaults."""
    base = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    counter = iter(range(1_000_000))

    def _make(text="hello there", kind=MessageKind.USER, offset=None, **kwargs):
        n = next(counter)
        return Message(
            kind=kind,
            uuid=kwargs.pop("uuid", f"msg-{n}"),
            session_id=kwargs.pop("session_id", "session-001"),
            timestamp=kwargs.pop("timestamp", base + timedelta(seconds=offset if offset is not None else n)),
            content=kwargs.pop("content", text),
            **kwargs,
        )

    return _make


class FakeClient:
    """Analysis client returning canned replies in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_client():
    """Factory for FakeClient."""
    return FakeClient


@pytest.fixture
def jsonl_writer():
    """Expose write_jsonl to tests."""
    return write_jsonl


@pytest.fixture
def mtime_setter():
    """Expose set_mtime to tests."""
    return set_mtime
