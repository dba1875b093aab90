"""Mapping between filesystem paths and Claude Code's project directory names.

Claude Code stores each project's transcripts in a directory named after the
project's absolute path with every separator replaced by a dash, e.g.
``/Users/me/code/my-app`` becomes ``-Users-me-code-my-app``. Dashes that were
already part of a directory name are indistinguishable from separators, so
decoding has to guess. The guesses are ordered most-specific first.
"""

SEPARATOR = "/"
DASH = "-"

# How many trailing dash-delimited segments to fold into the final path
# component, in the order they are tried.
FOLD_WIDTHS = (1, 2, 3)


def normalize_path(path: str) -> str:
    """Strip trailing separators, keeping the root as ``/``."""
    stripped = path.rstrip(SEPARATOR)
    return stripped or SEPARATOR


def encode_project_path(path: str) -> str:
    """Convert an absolute path to its project directory name."""
    relative = normalize_path(path).lstrip(SEPARATOR)
    return DASH + relative.replace(SEPARATOR, DASH)


def _fold(segments: list[str], width: int) -> str:
    head = segments[:-width]
    tail = DASH.join(segments[-width:])
    return SEPARATOR + SEPARATOR.join([*head, tail])


def decode_strategies(dir_name: str) -> list[str]:
    """Candidate paths for a project directory name, most specific first.

    1. every dash is a separator;
    2. the last two segments form one hyphenated directory name;
    3. the last three segments form one hyphenated directory name.

    Returns:
        Distinct candidate paths. Empty if the name is not an encoded path.
    """
    if not dir_name.startswith(DASH):
        return []

    body = dir_name[1:]
    if not body:
        return [SEPARATOR]

    segments = body.split(DASH)
    candidates: list[str] = []
    for width in FOLD_WIDTHS:
        if len(segments) < width:
            break
        candidate = _fold(segments, width)
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


def decode_project_path(dir_name: str) -> str:
    """Decode a directory name assuming every dash was a separator."""
    candidates = decode_strategies(dir_name)
    return candidates[0] if candidates else dir_name


def matches_path(dir_name: str, path: str) -> str | None:
    """Return the first decoded candidate equal to ``path``, if any."""
    target = normalize_path(path)
    for candidate in decode_strategies(dir_name):
        if candidate == target:
            return candidate
    return None


def path_segments(path: str) -> list[str]:
    """Non-empty components of a slash-separated path."""
    return [segment for segment in path.split(SEPARATOR) if segment]


def display_name(dir_name: str) -> str:
    """Short human-readable name (last decoded component)."""
    segments = path_segments(decode_project_path(dir_name))
    return segments[-1] if segments else dir_name
