"""FastMCP server for Claude Lessons."""

import logging
import os
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .cleanup import SessionCleanup
from .client import ClaudeCLIClient
from .config import DEFAULT_BATCH_TOKENS, DEFAULT_MAX_TOKENS, RECENT_SESSION_PREVIEW
from .loader import parse_session_file, session_metadata
from .memory import memory_file_path, write_memory_file
from .models import NoProjectResult
from .pipeline import analyze_project
from .resolver import detect_project, discover_projects

# Create the MCP server
mcp = FastMCP("claude-lessons")


def _get_current_project() -> str:
    """
    Get the current project path from environment.

    Claude Code sets CLAUDE_PROJECT_DIR when running plugins.
    Falls back to PWD/CWD if not available.
    """
    project = os.environ.get("CLAUDE_PROJECT_DIR")
    if project:
        return project
    return os.environ.get("PWD") or os.getcwd()


def _project_summary(project) -> dict:
    return {
        "name": project.name,
        "directory": project.dir_name,
        "sessions": project.session_count,
        "last_modified": project.last_modified.isoformat(),
        "activity_score": round(project.activity_score, 1),
        "match_type": project.match_type.value if project.match_type else None,
    }


@mcp.tool()
def list_projects(limit: int = 20) -> list[dict]:
    """
    List projects with Claude Code conversation history, most active first.

    Args:
        limit: Maximum number of projects to return (default: 20)
    """
    return [_project_summary(p) for p in discover_projects()[:limit]]


@mcp.tool()
def detect_current_project() -> dict:
    """
    Find the conversation history directory for the CURRENT PROJECT.

    Returns:
        Project summary with match type and metadata for the most recent
        sessions, or an error if nothing matches.
    """
    cwd = _get_current_project()
    project = detect_project(cwd)
    if project is None:
        return {"error": f"No Claude Code conversations found for {cwd}"}

    recent = []
    for session in project.sessions[:RECENT_SESSION_PREVIEW]:
        meta = session_metadata(parse_session_file(session.file_path).messages)
        if meta is not None:
            recent.append(
                {
                    "session_id": session.session_id,
                    "start_time": meta.start_time.isoformat(),
                    "duration_seconds": meta.duration_seconds,
                    "messages": meta.message_count,
                    "threads": meta.thread_count,
                    "git_branch": meta.git_branch,
                }
            )
    return {**_project_summary(project), "recent_sessions": recent}


@mcp.tool()
def clean_analysis_sessions() -> dict:
    """
    Delete transcripts left behind by earlier analysis runs in the current project.

    Only sessions containing this tool's own analysis prompts are removed.
    """
    project = detect_project(_get_current_project())
    if project is None:
        return {"deleted": []}
    return {"deleted": SessionCleanup(project.path).clean_existing_pollution()}


@mcp.tool()
def analyze_project_history(
    analyze_all: bool = False,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    batch_tokens: int = DEFAULT_BATCH_TOKENS,
    exclude_patterns: list[str] | None = None,
) -> dict:
    """
    Extract lessons (mistakes, successes, user profile, recommendations) from
    the CURRENT PROJECT's conversation history.

    Args:
        analyze_all: Analyze all sessions in batches instead of recent ones (default: false)
        max_tokens: Token budget when analyzing recent sessions (default: 50000)
        batch_tokens: Token budget per analysis call (default: 50000)
        exclude_patterns: Skip messages containing any of these substrings

    Returns:
        Merged analysis result plus the current CLAUDE.md content, ready to be
        merged into the memory file.
    """
    # The CLI records each call under its working directory, which must be
    # the analyzed project for SessionCleanup to find those transcripts.
    project_root = _get_current_project()
    run = analyze_project(
        ClaudeCLIClient(cwd=project_root),
        project_root,
        analyze_all=analyze_all,
        max_tokens=max_tokens,
        batch_tokens=batch_tokens,
        exclude_patterns=exclude_patterns or (),
    )
    if isinstance(run, NoProjectResult):
        return {
            "error": run.reason,
            "cwd": run.cwd,
            "candidates": [_project_summary(p) for p in run.candidates],
        }

    return {
        "project": _project_summary(run.project),
        "analysis": run.result.to_wire(),
        "batches": len(run.outcomes),
        "failed_batches": sum(1 for o in run.outcomes if not o.succeeded),
        "total_messages": run.total_messages,
        "total_tokens": run.total_tokens,
        "memory_path": str(run.memory_path),
        "existing_memory": run.existing_memory,
        "cleaned_sessions": run.cleaned_sessions,
    }


@mcp.tool()
def save_memory_file(content: str) -> dict:
    """
    Write new content to the CURRENT PROJECT's CLAUDE.md.

    Args:
        content: Complete new file content
    """
    path: Path = memory_file_path(_get_current_project())
    write_memory_file(path, content)
    return {"path": str(path), "characters": len(content)}


def main():
    """Run the MCP server."""
    logging.basicConfig(level=logging.WARNING)
    mcp.run()


if __name__ == "__main__":
    main()
