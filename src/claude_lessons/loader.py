"""Read session transcripts from the ~/.claude directory."""

import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .config import MIN_CONTENT_CHARS, SESSION_SUFFIX, get_projects_dir_override
from .models import Message, MessageKind, ParsedSession, SessionInfo, SessionMetadata

logger = logging.getLogger(__name__)

# Sort key for records that carry no timestamp (e.g. session summaries).
EPOCH = datetime.min.replace(tzinfo=timezone.utc)

_KINDS = {kind.value for kind in MessageKind}


def get_claude_dir() -> Path:
    """Get the Claude configuration directory."""
    return Path.home() / ".claude"


def get_projects_dir() -> Path:
    """Get the projects directory containing conversation history."""
    return get_projects_dir_override() or get_claude_dir() / "projects"


def list_project_dirs(projects_dir: Path | None = None) -> list[str]:
    """List encoded project directory names, sorted.

    A missing or unreadable projects directory yields an empty list.
    """
    projects_dir = projects_dir or get_projects_dir()
    try:
        return sorted(entry.name for entry in projects_dir.iterdir() if entry.is_dir())
    except OSError as e:
        logger.info(f"No Claude projects directory at {projects_dir}: {e}")
        return []


def list_sessions(project_dir: Path) -> list[SessionInfo]:
    """List transcript files in a project directory, newest first.

    Only filesystem metadata is read; message_count stays 0 until parsed.
    """
    try:
        files = [p for p in project_dir.iterdir() if p.name.endswith(SESSION_SUFFIX)]
    except OSError as e:
        logger.info(f"Cannot list sessions in {project_dir}: {e}")
        return []

    sessions = []
    for session_file in files:
        try:
            stats = session_file.stat()
        except OSError:
            # Removed between listing and stat
            continue
        if not session_file.is_file():
            continue
        sessions.append(
            SessionInfo(
                session_id=session_file.name[: -len(SESSION_SUFFIX)],
                file_path=session_file,
                modified=datetime.fromtimestamp(stats.st_mtime),
                size=stats.st_size,
            )
        )

    return sorted(sessions, key=lambda s: s.modified, reverse=True)


def _parse_timestamp(ts: str | int | float | None) -> datetime | None:
    """Parse a timestamp from ISO-8601 or Unix milliseconds, as aware UTC."""
    if ts is None or isinstance(ts, bool):
        return None
    if isinstance(ts, (int, float)):
        try:
            return datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            # Infinity, NaN or outside the platform time_t range
            return None
    if isinstance(ts, str):
        try:
            parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _normalize_content(content) -> str | list[dict] | None:
    """Coerce message content into a string or a list of block dicts."""
    if content is None or isinstance(content, str):
        return content
    if isinstance(content, list):
        blocks = []
        for block in content:
            if isinstance(block, dict) and isinstance(block.get("type"), str):
                blocks.append(block)
            elif isinstance(block, str):
                blocks.append({"type": "text", "text": block})
        return blocks
    return None


def parse_message(data: dict) -> Message | None:
    """Build a Message from one decoded transcript record.

    Returns None for record types that carry no conversation content
    (file snapshots, queue operations, ...).

    Raises:
        ValidationError: If the record has a known type but malformed fields.
    """
    msg_type = data.get("type")
    if msg_type not in _KINDS:
        return None

    payload = data.get("message")
    content = payload.get("content") if isinstance(payload, dict) else None

    timestamp = _parse_timestamp(data.get("timestamp"))
    return Message(
        kind=msg_type,
        uuid=data.get("uuid") or "",
        leaf_uuid=data.get("leafUuid"),
        parent_uuid=data.get("parentUuid"),
        session_id=data.get("sessionId") or "",
        timestamp=timestamp or EPOCH,
        cwd=data.get("cwd") or "",
        content=_normalize_content(content),
        summary=data.get("summary"),
        git_branch=data.get("gitBranch"),
        version=data.get("version"),
    )


def parse_session_file(filepath: Path) -> ParsedSession:
    """Parse a JSONL transcript into messages sorted by timestamp.

    Each line is parsed on its own; malformed lines are skipped and counted,
    since the writer may have been interrupted mid-line.
    """
    messages: list[Message] = []
    skipped = 0

    try:
        with open(filepath, encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise ValueError("record is not a JSON object")
                    message = parse_message(data)
                except (ValueError, ValidationError) as e:
                    skipped += 1
                    logger.warning(f"Skipping malformed line {line_number} in {filepath}: {e}")
                    continue
                if message is not None:
                    messages.append(message)
    except OSError as e:
        logger.error(f"Failed to read session file {filepath}: {e}")
        return ParsedSession()

    messages.sort(key=lambda m: m.timestamp)
    return ParsedSession(messages=messages, skipped_lines=skipped)


def has_substantial_content(message: Message) -> bool:
    """Whether a message carries enough text to be worth analyzing."""
    return len(message.text.strip()) > MIN_CONTENT_CHARS


def build_threads(messages: list[Message]) -> list[list[Message]]:
    """Group messages into threads following parent links.

    Each thread starts at a root (a message without a parent) and lists its
    descendants depth-first, children in timestamp order. Summary records
    point at a leaf rather than a parent and start no thread.
    """
    children: dict[str, list[Message]] = defaultdict(list)
    for message in messages:
        if message.parent_uuid:
            children[message.parent_uuid].append(message)
    for siblings in children.values():
        siblings.sort(key=lambda m: m.timestamp)

    threads = []
    for root in (m for m in messages if not m.parent_uuid and m.kind != MessageKind.SUMMARY):
        thread: list[Message] = []
        stack = [root]
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current.uuid and current.uuid in seen:
                continue
            seen.add(current.uuid)
            thread.append(current)
            stack.extend(reversed(children.get(current.uuid, [])))
        threads.append(thread)
    return threads


def session_metadata(messages: list[Message]) -> SessionMetadata | None:
    """Extract summary facts from a session's sorted messages."""
    if not messages:
        return None

    # Summaries carry no timestamp or session id of their own
    timed = [m for m in messages if m.kind != MessageKind.SUMMARY] or messages
    first, last = timed[0], timed[-1]
    return SessionMetadata(
        session_id=first.session_id,
        start_time=first.timestamp,
        end_time=last.timestamp,
        message_count=len(messages),
        user_messages=sum(1 for m in messages if m.kind == MessageKind.USER),
        assistant_messages=sum(1 for m in messages if m.kind == MessageKind.ASSISTANT),
        thread_count=len(build_threads(messages)),
        cwd=first.cwd,
        git_branch=first.git_branch,
        version=first.version,
    )
