"""Tests for token estimation and batch planning."""

import pytest

from claude_lessons.batching import (
    estimate_tokens,
    filter_excluded,
    plan_batches,
    select_recent_messages,
)
from claude_lessons.models import MessageKind


class TestEstimateTokens:
    """Tests for the token estimate."""

    def test_rounds_up(self, make_message):
        assert estimate_tokens(make_message("abcde")) == 2

    def test_exact_multiple(self, make_message):
        assert estimate_tokens(make_message("x" * 40)) == 10

    def test_summary_uses_wrapped_text(self, make_message):
        msg = make_message(kind=MessageKind.SUMMARY, content=None, summary="abc")
        assert estimate_tokens(msg) == len("[Session Summary: abc]") // 4 + 1


class TestPlanBatches:
    """Tests for greedy batching."""

    def test_scenario_five_equal_messages(self, make_message):
        """Five messages of 10 tokens with a ceiling of 25."""
        messages = [make_message("x" * 40) for _ in range(5)]
        batches = plan_batches(messages, 25)
        assert [[m.uuid for m in b.messages] for b in batches] == [
            [messages[0].uuid, messages[1].uuid],
            [messages[2].uuid, messages[3].uuid],
            [messages[4].uuid],
        ]
        assert [b.token_count for b in batches] == [20, 20, 10]
        assert [b.index for b in batches] == [0, 1, 2]

    def test_oversized_message_alone(self, make_message):
        small = make_message("x" * 40)
        big = make_message("y" * 400)
        tail = make_message("z" * 40)
        batches = plan_batches([small, big, tail], 25)
        assert [len(b.messages) for b in batches] == [1, 1, 1]
        assert batches[1].messages == [big]
        assert batches[1].token_count == 100

    def test_oversized_first_message(self, make_message):
        big = make_message("y" * 400)
        batches = plan_batches([big], 25)
        assert len(batches) == 1
        assert batches[0].messages == [big]

    def test_exact_fit(self, make_message):
        messages = [make_message("x" * 40) for _ in range(3)]
        assert len(plan_batches(messages, 30)) == 1

    def test_concatenation_preserves_input(self, make_message):
        messages = [make_message("x" * (7 * i + 3)) for i in range(30)]
        batches = plan_batches(messages, 50)
        assert all(b.messages for b in batches)
        assert [m for b in batches for m in b.messages] == messages

    def test_empty_input(self):
        assert plan_batches([], 100) == []

    def test_custom_estimator(self, make_message):
        messages = [make_message() for _ in range(4)]
        batches = plan_batches(messages, 2, estimator=lambda m: 1)
        assert [len(b.messages) for b in batches] == [2, 2]

    def test_non_positive_ceiling(self, make_message):
        with pytest.raises(ValueError):
            plan_batches([make_message()], 0)


class TestFilterExcluded:
    """Tests for exclude patterns."""

    def test_drops_matching(self, make_message):
        keep = make_message("please refactor the parser")
        drop = make_message("<system-reminder> ignore me")
        assert filter_excluded([keep, drop], ["<system-reminder>"]) == [keep]

    def test_no_patterns(self, make_message):
        messages = [make_message("anything goes here")]
        assert filter_excluded(messages, []) == messages
        assert filter_excluded(messages, [""]) == messages


class TestSelectRecentMessages:
    """Tests for budgeted selection from recent sessions."""

    def test_budget_respected(self, make_message):
        newest = [make_message("a" * 40, offset=100), make_message("b" * 40, offset=101)]
        older = [make_message("c" * 40, offset=1)]
        selected = select_recent_messages([newest, older], max_tokens=20)
        assert [m.text[0] for m in selected] == ["a", "b"]

    def test_spans_sessions_sorted_by_time(self, make_message):
        newest = [make_message("a" * 40, offset=100)]
        older = [make_message("c" * 40, offset=1)]
        selected = select_recent_messages([newest, older], max_tokens=100)
        assert [m.text[0] for m in selected] == ["c", "a"]

    def test_skips_insubstantial(self, make_message):
        selected = select_recent_messages([[make_message("ok"), make_message("d" * 40)]], 100)
        assert len(selected) == 1

    def test_session_limit(self, make_message):
        sessions = [[make_message("e" * 40, offset=i)] for i in range(5)]
        assert len(select_recent_messages(sessions, 1000, session_limit=2)) == 2
