"""Claude Lessons - Learn from Claude Code conversation history."""

from .analyzer import BatchAnalyzer, LoggingProgress, NullProgress, ProgressReporter
from .batching import estimate_tokens, plan_batches
from .cleanup import SessionCleanup
from .client import AnalysisClient, AnalysisError, AnalysisServiceError, ClaudeCLIClient
from .loader import parse_session_file
from .merger import merge_results
from .models import (
    AnalysisResult,
    AnalysisRun,
    Batch,
    Message,
    NoProjectResult,
    ProjectInfo,
    SessionInfo,
)
from .paths import decode_strategies, encode_project_path
from .pipeline import analyze_project
from .resolver import detect_project, discover_projects
from .response import AnalysisFormatError, parse_analysis_response

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "analyze_project",
    "detect_project",
    "discover_projects",
    "encode_project_path",
    "decode_strategies",
    "parse_session_file",
    "estimate_tokens",
    "plan_batches",
    "merge_results",
    "parse_analysis_response",
    "BatchAnalyzer",
    "ProgressReporter",
    "LoggingProgress",
    "NullProgress",
    "SessionCleanup",
    "AnalysisClient",
    "ClaudeCLIClient",
    "AnalysisError",
    "AnalysisFormatError",
    "AnalysisServiceError",
    "AnalysisResult",
    "AnalysisRun",
    "Batch",
    "Message",
    "NoProjectResult",
    "ProjectInfo",
    "SessionInfo",
]
