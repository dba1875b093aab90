"""Remove transcripts created by our own analysis calls.

Every ``claude -p`` call is itself recorded as a session in the project's
transcript directory, the same directory we analyze. Sessions are nominated
for deletion by timing (modified after a call started) but only deleted if
their content contains one of our prompt fingerprints.
"""

import logging
from pathlib import Path

from .config import SESSION_SUFFIX
from .prompts import ANALYSIS_FINGERPRINTS, contains_fingerprint

logger = logging.getLogger(__name__)


class SessionCleanup:
    """Tracks and deletes analysis sessions in one project directory."""

    def __init__(self, project_dir: Path, fingerprints: tuple[str, ...] = ANALYSIS_FINGERPRINTS):
        self.project_dir = Path(project_dir)
        self.fingerprints = fingerprints
        self._tracked: set[str] = set()
        self.deleted: list[str] = []

    @property
    def tracked(self) -> frozenset[str]:
        return frozenset(self._tracked)

    def _session_file(self, session_id: str) -> Path:
        return self.project_dir / f"{session_id}{SESSION_SUFFIX}"

    def is_analysis_session(self, session_id: str) -> bool:
        """Whether a session's transcript contains one of our fingerprints."""
        try:
            content = self._session_file(session_id).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False
        return contains_fingerprint(content, self.fingerprints)

    def _delete_if_ours(self, session_id: str) -> bool:
        if not self.is_analysis_session(session_id):
            return False
        try:
            self._session_file(session_id).unlink()
        except OSError as e:
            logger.error(f"Error deleting analysis session {session_id}: {e}")
            return False
        logger.info(f"Deleted analysis session: {session_id}")
        self.deleted.append(session_id)
        return True

    def find_recent_session(self, after: float) -> str | None:
        """Id of the most recently modified session newer than ``after`` (epoch seconds)."""
        newest: tuple[float, str] | None = None
        try:
            files = list(self.project_dir.glob(f"*{SESSION_SUFFIX}"))
        except OSError as e:
            logger.warning(f"Error scanning {self.project_dir} for new sessions: {e}")
            return None

        for session_file in files:
            try:
                mtime = session_file.stat().st_mtime
            except OSError:
                continue
            if mtime > after and (newest is None or mtime > newest[0]):
                newest = (mtime, session_file.name[: -len(SESSION_SUFFIX)])
        return newest[1] if newest else None

    def track_session(self, session_id: str) -> None:
        """Remember a session for deletion at the end of the run."""
        self._tracked.add(session_id)
        logger.debug(f"Tracked session for cleanup: {session_id}")

    def track_after(self, started_at: float) -> str | None:
        """Nominate the session written by a call that started at ``started_at``."""
        session_id = self.find_recent_session(started_at)
        if session_id is not None:
            self.track_session(session_id)
        return session_id

    def cleanup(self) -> list[str]:
        """Delete tracked sessions that still match a fingerprint."""
        if not self._tracked:
            return []

        logger.info(f"Cleaning up {len(self._tracked)} analysis session(s)")
        removed = [sid for sid in sorted(self._tracked) if self._delete_if_ours(sid)]
        self._tracked.clear()
        return removed

    def clean_existing_pollution(self) -> list[str]:
        """Delete fingerprinted sessions left behind by earlier runs."""
        try:
            files = sorted(self.project_dir.glob(f"*{SESSION_SUFFIX}"))
        except OSError as e:
            logger.warning(f"Error during pollution scan of {self.project_dir}: {e}")
            return []

        removed = []
        for session_file in files:
            session_id = session_file.name[: -len(SESSION_SUFFIX)]
            if session_id in self._tracked:
                continue
            if self._delete_if_ours(session_id):
                removed.append(session_id)

        if removed:
            logger.info(f"Cleaned up {len(removed)} leftover analysis session(s)")
        return removed

    def __enter__(self) -> "SessionCleanup":
        self.clean_existing_pollution()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
