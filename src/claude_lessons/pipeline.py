"""End-to-end analysis of a project's conversation history."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from .analyzer import BatchAnalyzer, LoggingProgress, ProgressReporter
from .batching import estimate_tokens, filter_excluded, plan_batches, select_recent_messages
from .cleanup import SessionCleanup
from .client import AnalysisClient
from .config import DEFAULT_BATCH_TOKENS, DEFAULT_MAX_TOKENS, MAX_NO_PROJECT_CANDIDATES
from .loader import has_substantial_content, parse_session_file
from .memory import memory_file_path, read_memory_file
from .merger import merge_results
from .models import AnalysisRun, Message, NoProjectResult, ProjectInfo
from .resolver import detect_project, discover_projects

logger = logging.getLogger(__name__)


def load_project_messages(project: ProjectInfo, skip: Iterable[str] = ()) -> list[list[Message]]:
    """Parse every session of a project, newest session first."""
    skip = set(skip)
    per_session = []
    for session in project.sessions:
        if session.session_id in skip:
            continue
        parsed = parse_session_file(session.file_path)
        session.message_count = len(parsed.messages)
        if parsed.skipped_lines:
            logger.warning(f"{session.session_id}: skipped {parsed.skipped_lines} malformed line(s)")
        per_session.append(parsed.messages)
    return per_session


def collect_messages(
    per_session: list[list[Message]], analyze_all: bool, max_tokens: int
) -> list[Message]:
    """Pick the messages to analyze, in chronological order."""
    if not analyze_all:
        return select_recent_messages(per_session, max_tokens)

    messages = [m for session in per_session for m in session if has_substantial_content(m)]
    messages.sort(key=lambda m: m.timestamp)
    return messages


def analyze_project(
    client: AnalysisClient,
    cwd: str | None = None,
    *,
    analyze_all: bool = False,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    batch_tokens: int = DEFAULT_BATCH_TOKENS,
    exclude_patterns: Iterable[str] = (),
    progress: ProgressReporter | None = None,
    call_delay: float | None = None,
    projects_dir: Path | None = None,
) -> AnalysisRun | NoProjectResult:
    """
    Analyze the conversation history of the project at ``cwd``.

    Args:
        client: Analysis collaborator
        cwd: Project working directory (defaults to the process cwd)
        analyze_all: Analyze every session instead of the most recent ones
        max_tokens: Token budget for recent-session mode
        batch_tokens: Token ceiling per analysis call
        exclude_patterns: Skip messages containing any of these substrings
        progress: Progress reporter (defaults to logging)
        call_delay: Seconds between calls (defaults to configuration)
        projects_dir: Claude projects directory (defaults to ~/.claude/projects)

    Returns:
        The merged analysis run, or a NoProjectResult if no transcripts match.
    """
    cwd = os.path.abspath(cwd or os.getcwd())
    project = detect_project(cwd, projects_dir)
    if project is None:
        return NoProjectResult(
            cwd=cwd,
            reason="No Claude Code conversations found for this directory",
            candidates=discover_projects(projects_dir)[:MAX_NO_PROJECT_CANDIDATES],
        )

    logger.info(
        f"Analyzing project {project.name} ({project.match_type.value}, "
        f"{project.session_count} sessions)"
    )

    with SessionCleanup(project.path) as guard:
        per_session = load_project_messages(project, skip=guard.deleted)
        messages = collect_messages(per_session, analyze_all, max_tokens)
        messages = filter_excluded(messages, exclude_patterns)
        batches = plan_batches(messages, batch_tokens)

        analyzer = BatchAnalyzer(
            client,
            progress=progress or LoggingProgress(),
            tracker=guard,
            call_delay=call_delay,
        )
        outcomes = analyzer.run(batches)

    result = merge_results([o.result for o in outcomes if o.result is not None])
    memory_path = memory_file_path(cwd)

    return AnalysisRun(
        project=project,
        result=result,
        outcomes=outcomes,
        total_messages=len(messages),
        total_tokens=sum(estimate_tokens(m) for m in messages),
        memory_path=memory_path,
        existing_memory=read_memory_file(memory_path),
        cleaned_sessions=list(guard.deleted),
    )
