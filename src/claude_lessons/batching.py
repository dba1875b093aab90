"""Token estimation and batching of messages for analysis."""

import logging
import math
from collections.abc import Callable, Iterable

from .config import CHARS_PER_TOKEN, RECENT_SESSION_LIMIT
from .loader import has_substantial_content
from .models import Batch, Message

logger = logging.getLogger(__name__)


def estimate_tokens(message: Message) -> int:
    """Approximate token cost of a message (about 4 characters per token)."""
    return math.ceil(len(message.text) / CHARS_PER_TOKEN)


def plan_batches(
    messages: list[Message],
    ceiling: int,
    estimator: Callable[[Message], int] = estimate_tokens,
) -> list[Batch]:
    """
    Split messages into consecutive batches of at most ``ceiling`` tokens.

    Messages are appended greedily in their original order. A message that
    alone exceeds the ceiling gets a batch of its own.

    Args:
        messages: Chronologically ordered messages
        ceiling: Maximum estimated tokens per batch
        estimator: Token cost function

    Returns:
        Non-empty batches whose concatenation equals ``messages``.

    Raises:
        ValueError: If ``ceiling`` is not positive.
    """
    if ceiling <= 0:
        raise ValueError(f"Batch token ceiling must be positive, got {ceiling}")

    batches: list[Batch] = []
    current: list[Message] = []
    current_tokens = 0

    for message in messages:
        tokens = estimator(message)
        if current and current_tokens + tokens > ceiling:
            batches.append(Batch(index=len(batches), messages=current, token_count=current_tokens))
            current, current_tokens = [], 0
        current.append(message)
        current_tokens += tokens

    if current:
        batches.append(Batch(index=len(batches), messages=current, token_count=current_tokens))

    return batches


def filter_excluded(messages: list[Message], patterns: Iterable[str]) -> list[Message]:
    """Drop messages whose text contains any of the given substrings."""
    patterns = [p for p in patterns if p]
    if not patterns:
        return list(messages)

    kept = [m for m in messages if not any(p in m.text for p in patterns)]
    excluded = len(messages) - len(kept)
    if excluded:
        logger.info(f"Excluded {excluded} messages matching patterns: {', '.join(patterns)}")
    return kept


def select_recent_messages(
    sessions: list[list[Message]],
    max_tokens: int,
    session_limit: int = RECENT_SESSION_LIMIT,
) -> list[Message]:
    """
    Collect substantial messages from the newest sessions within a token budget.

    Args:
        sessions: Parsed messages per session, newest session first
        max_tokens: Total token budget
        session_limit: Maximum number of sessions to read from

    Returns:
        Selected messages, sorted by timestamp.
    """
    selected: list[Message] = []
    used = 0

    for messages in sessions[:session_limit]:
        if used >= max_tokens:
            break
        for message in messages:
            if not has_substantial_content(message):
                continue
            tokens = estimate_tokens(message)
            if used + tokens > max_tokens:
                break
            selected.append(message)
            used += tokens

    selected.sort(key=lambda m: m.timestamp)
    return selected
