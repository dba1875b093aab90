"""Pydantic data models for Claude Lessons."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "unknown"


class MessageKind(str, Enum):
    """Record types found in a transcript that carry conversation content."""

    USER = "user"
    ASSISTANT = "assistant"
    SUMMARY = "summary"
    TOOL_RESULT = "tool_result"


class ContentBlock(BaseModel):
    """One typed block of message content (text, tool invocation, ...)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str
    text: str | None = None
    id: str | None = None
    name: str | None = None
    input: Any = None


class Message(BaseModel):
    """A single transcript entry."""

    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    uuid: str = ""
    parent_uuid: str | None = None
    leaf_uuid: str | None = None
    session_id: str = ""
    timestamp: datetime
    cwd: str = ""
    content: str | list[ContentBlock] | None = None
    summary: str | None = None
    git_branch: str | None = None
    version: str | None = None

    def text_blocks(self) -> list[str]:
        """Text content as a list of strings, ignoring tool invocations."""
        if self.content is None:
            return []
        if isinstance(self.content, str):
            return [self.content]
        return [block.text for block in self.content if block.type == "text" and block.text]

    @property
    def text(self) -> str:
        """Text sent to the analysis collaborator for this message."""
        if self.kind in (MessageKind.USER, MessageKind.ASSISTANT):
            return "\n".join(self.text_blocks())
        if self.kind == MessageKind.SUMMARY and self.summary:
            return f"[Session Summary: {self.summary}]"
        return "[Non-text message]"


class ParsedSession(BaseModel):
    """Messages parsed from one transcript file."""

    messages: list[Message] = Field(default_factory=list)
    skipped_lines: int = 0


class SessionMetadata(BaseModel):
    """Summary facts about a parsed session."""

    session_id: str
    start_time: datetime
    end_time: datetime
    message_count: int
    user_messages: int
    assistant_messages: int
    thread_count: int = 0
    cwd: str = ""
    git_branch: str | None = None
    version: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


class SessionInfo(BaseModel):
    """Filesystem metadata about one transcript file."""

    session_id: str
    file_path: Path
    modified: datetime
    size: int = 0
    message_count: int = 0


class MatchType(str, Enum):
    """How a transcript directory was matched to the working directory."""

    EXACT_PATH = "exact-path"
    PROJECT_NAME = "project-name"
    PARTIAL_PATH = "partial-path"


class ProjectInfo(BaseModel):
    """A transcript directory and the sessions it holds."""

    dir_name: str
    path: Path
    name: str
    sessions: list[SessionInfo] = Field(default_factory=list)
    activity_score: float = 0.0
    match_type: MatchType | None = None

    @property
    def last_modified(self) -> datetime:
        """Modification time of the most recent session."""
        return max((s.modified for s in self.sessions), default=datetime.min)

    @property
    def session_count(self) -> int:
        return len(self.sessions)


class Batch(BaseModel):
    """A contiguous, token-budgeted slice of messages."""

    index: int
    messages: list[Message]
    token_count: int


# Analysis schema. Field aliases follow the JSON the collaborator returns.


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Mistake(_WireModel):
    """Something that went wrong and the lesson drawn from it."""

    type: str = UNKNOWN
    description: str = ""
    evidence: str = ""
    lesson: str = ""


class Success(_WireModel):
    """Something that worked and should be repeated."""

    type: str = UNKNOWN
    description: str = ""
    evidence: str = ""
    lesson: str = ""


class Environment(_WireModel):
    os: str = UNKNOWN
    restrictions: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)


class Style(_WireModel):
    verbosity: str = UNKNOWN
    tech_level: str = Field(default=UNKNOWN, alias="techLevel")
    patience: str = UNKNOWN


class UserProfile(_WireModel):
    environment: Environment = Field(default_factory=Environment)
    style: Style = Field(default_factory=Style)
    boundaries: list[str] = Field(default_factory=list)
    preferences: list[str] = Field(default_factory=list)


class AnalysisResult(_WireModel):
    """Structured findings extracted from one or more batches."""

    mistakes: list[Mistake] = Field(default_factory=list)
    successes: list[Success] = Field(default_factory=list)
    user_profile: UserProfile = Field(default_factory=UserProfile, alias="userProfile")
    recommendations: list[str] = Field(default_factory=list)

    def to_wire(self) -> dict:
        """Serialize using the collaborator's JSON field names."""
        return self.model_dump(mode="json", by_alias=True)


class DecodedResult(BaseModel):
    """An analysis result plus the fields that had to be defaulted."""

    result: AnalysisResult
    defaulted_fields: list[str] = Field(default_factory=list)


class BatchOutcome(BaseModel):
    """What one analysis call contributed to a run."""

    batch_index: int
    message_count: int
    token_count: int
    result: AnalysisResult | None = None
    error: str | None = None
    defaulted_fields: list[str] = Field(default_factory=list)
    session_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class AnalysisRun(BaseModel):
    """Final artifact of an analysis run, ready for the memory-file updater."""

    project: ProjectInfo
    result: AnalysisResult
    outcomes: list[BatchOutcome] = Field(default_factory=list)
    total_messages: int = 0
    total_tokens: int = 0
    memory_path: Path
    existing_memory: str = ""
    cleaned_sessions: list[str] = Field(default_factory=list)


class NoProjectResult(BaseModel):
    """Returned when no transcript directory matches the working directory."""

    cwd: str
    reason: str
    candidates: list[ProjectInfo] = Field(default_factory=list)
