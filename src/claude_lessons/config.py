"""Centralized configuration constants for Claude Lessons."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Transcript store
PROJECTS_DIR_ENV = "CLAUDE_LESSONS_PROJECTS_DIR"
SESSION_SUFFIX = ".jsonl"

# Analysis collaborator
CLAUDE_BIN_ENV = "CLAUDE_LESSONS_CLAUDE_BIN"
MODEL_ENV = "CLAUDE_LESSONS_MODEL"
CALL_DELAY_ENV = "CLAUDE_LESSONS_CALL_DELAY"
DEFAULT_CLAUDE_BIN = "claude"
DEFAULT_MODEL = "sonnet"
DEFAULT_CALL_DELAY_SECONDS = 1.0

# Token budgeting
CHARS_PER_TOKEN = 4
DEFAULT_MAX_TOKENS = 50_000
DEFAULT_BATCH_TOKENS = 50_000
MAX_MESSAGE_CHARS = 4000
MIN_CONTENT_CHARS = 10
RECENT_SESSION_LIMIT = 10

# Project resolution
MAX_NO_PROJECT_CANDIDATES = 5
RECENT_SESSION_PREVIEW = 5

# Memory file
MEMORY_FILE_NAME = "CLAUDE.md"


def get_claude_bin() -> str:
    """Get the path or name of the `claude` executable."""
    return os.environ.get(CLAUDE_BIN_ENV) or DEFAULT_CLAUDE_BIN


def get_model() -> str:
    """Get the model alias passed to the analysis collaborator."""
    return os.environ.get(MODEL_ENV) or DEFAULT_MODEL


def get_call_delay() -> float:
    """Get the pause between consecutive analysis calls, in seconds."""
    override = os.environ.get(CALL_DELAY_ENV)
    if override:
        try:
            return max(0.0, float(override))
        except ValueError:
            logger.warning(f"Invalid {CALL_DELAY_ENV} value: {override}, using default")
    return DEFAULT_CALL_DELAY_SECONDS


def get_projects_dir_override() -> Path | None:
    """Get an explicit projects directory from the environment, if set."""
    override = os.environ.get(PROJECTS_DIR_ENV)
    return Path(override).expanduser() if override else None
