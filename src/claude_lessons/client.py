"""Clients for the external analysis collaborator."""

import logging
import subprocess
from typing import Protocol

from .config import get_claude_bin, get_model

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """A batch could not be turned into an analysis result."""


class AnalysisServiceError(AnalysisError, RuntimeError):
    """The collaborator call itself failed."""


class AnalysisClient(Protocol):
    """Anything that turns a prompt into a text completion."""

    def complete(self, prompt: str) -> str: ...


class ClaudeCLIClient:
    """
    Run one non-interactive turn through the ``claude`` CLI.

    The prompt is passed on stdin, the reply is read from stdout. The CLI
    records each call as a new session in ~/.claude/projects, which is why
    runs are wrapped in a SessionCleanup.
    """

    def __init__(
        self,
        model: str | None = None,
        claude_bin: str | None = None,
        timeout: float | None = None,
        cwd: str | None = None,
    ):
        self.model = model or get_model()
        self.claude_bin = claude_bin or get_claude_bin()
        self.timeout = timeout
        self.cwd = cwd

    def command(self) -> list[str]:
        """Command line for one analysis turn with no tool access."""
        return [
            self.claude_bin,
            "-p",
            "--output-format",
            "text",
            "--max-turns",
            "1",
            "--model",
            self.model,
            "--tools",
            "",
        ]

    def complete(self, prompt: str) -> str:
        """Send a prompt and return the reply text.

        Raises:
            AnalysisServiceError: If the CLI cannot be started, times out or exits non-zero.
        """
        try:
            proc = subprocess.run(
                self.command(),
                input=prompt,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                cwd=self.cwd,
            )
        except FileNotFoundError as e:
            raise AnalysisServiceError(f"claude executable not found: {self.claude_bin}") from e
        except OSError as e:
            raise AnalysisServiceError(f"could not run {self.claude_bin}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise AnalysisServiceError(f"claude call timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            raise AnalysisServiceError(f"claude exited with code {proc.returncode}: {stderr}")

        return proc.stdout or ""
