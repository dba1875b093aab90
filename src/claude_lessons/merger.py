"""Combine per-batch analysis results into one report."""

from collections.abc import Iterable

from .models import UNKNOWN, AnalysisResult, Environment, Style, UserProfile


def _dedupe(items: Iterable[str]) -> list[str]:
    """Remove exact duplicates, keeping first-seen order."""
    return list(dict.fromkeys(items))


def _first_known(values: Iterable[str]) -> str:
    """First value that is not "unknown" (earliest batch wins)."""
    for value in values:
        if value and value.strip().lower() != UNKNOWN:
            return value
    return UNKNOWN


def merge_results(results: list[AnalysisResult]) -> AnalysisResult:
    """
    Merge independently produced batch results.

    Findings are concatenated without a cap and ordered by descending lesson
    length. Scalar profile fields keep the earliest known value, since later
    batches only see a fragment of the history. List fields are deduplicated
    by exact string equality.
    """
    if not results:
        return AnalysisResult()

    mistakes = [m for r in results for m in r.mistakes]
    successes = [s for r in results for s in r.successes]
    profiles = [r.user_profile for r in results]

    merged = AnalysisResult(
        mistakes=sorted(mistakes, key=lambda m: len(m.lesson), reverse=True),
        successes=sorted(successes, key=lambda s: len(s.lesson), reverse=True),
        user_profile=UserProfile(
            environment=Environment(
                os=_first_known(p.environment.os for p in profiles),
                restrictions=_dedupe(x for p in profiles for x in p.environment.restrictions),
                tools=_dedupe(x for p in profiles for x in p.environment.tools),
            ),
            style=Style(
                verbosity=_first_known(p.style.verbosity for p in profiles),
                tech_level=_first_known(p.style.tech_level for p in profiles),
                patience=_first_known(p.style.patience for p in profiles),
            ),
            boundaries=_dedupe(x for p in profiles for x in p.boundaries),
            preferences=_dedupe(x for p in profiles for x in p.preferences),
        ),
        recommendations=_dedupe(x for r in results for x in r.recommendations),
    )
    return merged.model_copy(deep=True)
