"""Find the Claude Code transcript directory for a working directory."""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

from .loader import get_projects_dir, list_project_dirs, list_sessions
from .models import MatchType, ProjectInfo, SessionInfo
from .paths import (
    decode_project_path,
    display_name,
    encode_project_path,
    matches_path,
    normalize_path,
    path_segments,
)

logger = logging.getLogger(__name__)

# Trailing path segments compared by the partial-path heuristic.
PARTIAL_MATCH_DEPTH = 3


def activity_score(sessions: list[SessionInfo], now: datetime | None = None) -> float:
    """
    Score a project by how recently and how much it was used.

    Each session earns points by age (100 within a day, 50 within a week,
    20 within a month, 5 otherwise) plus up to 10 points for its size in KB.
    """
    now = now or datetime.now()
    score = 0.0
    for session in sessions:
        age = now - session.modified
        if age < timedelta(days=1):
            score += 100
        elif age < timedelta(weeks=1):
            score += 50
        elif age < timedelta(days=30):
            score += 20
        else:
            score += 5
        score += min(session.size / 1000, 10)
    return score


def build_project_info(
    projects_dir: Path, dir_name: str, match_type: MatchType | None = None
) -> ProjectInfo | None:
    """Describe one project directory; None if it holds no sessions."""
    project_path = projects_dir / dir_name
    sessions = list_sessions(project_path)
    if not sessions:
        return None

    return ProjectInfo(
        dir_name=dir_name,
        path=project_path,
        name=display_name(dir_name),
        sessions=sessions,
        activity_score=activity_score(sessions),
        match_type=match_type,
    )


def _is_name_match(dir_name: str, cwd: str) -> bool:
    """Final decoded segment equals the final cwd segment, ignoring case."""
    current = path_segments(cwd)
    if not current:
        return False
    return display_name(dir_name).lower() == current[-1].lower()


def _is_partial_match(dir_name: str, cwd: str) -> bool:
    """Any of the trailing segments agree position by position."""
    current = path_segments(cwd)
    candidate = path_segments(decode_project_path(dir_name))
    depth = min(PARTIAL_MATCH_DEPTH, len(current), len(candidate))
    if depth == 0:
        return False

    current_tail = current[-depth:]
    candidate_tail = candidate[-depth:]
    return any(a.lower() == b.lower() for a, b in zip(current_tail, candidate_tail))


def detect_project(cwd: str | None = None, projects_dir: Path | None = None) -> ProjectInfo | None:
    """
    Find the transcript directory that best matches a working directory.

    Exact reconstructions of the path are tried first; if none has sessions,
    looser name and partial-path heuristics are applied to every candidate
    and the most recently active match wins.

    Args:
        cwd: Working directory (defaults to the process cwd)
        projects_dir: Claude projects directory (defaults to ~/.claude/projects)

    Returns:
        The matched project, or None if nothing with sessions matches.
    """
    projects_dir = projects_dir or get_projects_dir()
    cwd = normalize_path(os.path.abspath(cwd or os.getcwd()))
    dir_names = list_project_dirs(projects_dir)

    # Direct encoding is the common case and avoids scanning every directory.
    expected = encode_project_path(cwd)
    if expected in dir_names:
        project = build_project_info(projects_dir, expected, MatchType.EXACT_PATH)
        if project:
            logger.info(f"Exact match {expected}: {project.session_count} sessions")
            return project

    for dir_name in dir_names:
        if matches_path(dir_name, cwd):
            project = build_project_info(projects_dir, dir_name, MatchType.EXACT_PATH)
            if project:
                logger.info(f"Exact match {dir_name}: {project.session_count} sessions")
                return project

    candidates: list[ProjectInfo] = []
    for dir_name in dir_names:
        if _is_name_match(dir_name, cwd):
            match_type = MatchType.PROJECT_NAME
        elif _is_partial_match(dir_name, cwd):
            match_type = MatchType.PARTIAL_PATH
        else:
            continue
        project = build_project_info(projects_dir, dir_name, match_type)
        if project:
            candidates.append(project)

    if not candidates:
        logger.info(f"No Claude Code conversations found for {cwd}")
        return None

    best = max(candidates, key=lambda p: p.last_modified)
    if len(candidates) > 1:
        logger.info(
            f"{len(candidates)} candidate projects for {cwd}; "
            f"using most recent: {best.dir_name} ({best.match_type.value})"
        )
    return best


def discover_projects(projects_dir: Path | None = None) -> list[ProjectInfo]:
    """All projects with sessions, most active first."""
    projects_dir = projects_dir or get_projects_dir()
    projects = []
    for dir_name in list_project_dirs(projects_dir):
        project = build_project_info(projects_dir, dir_name)
        if project:
            projects.append(project)
    return sorted(projects, key=lambda p: p.activity_score, reverse=True)
