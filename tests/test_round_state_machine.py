"""
Tests for the debate round lifecycle.
"""

import pytest

from domain.models.debate import Persona, RecentLog, RoundPhase, Side
from domain.models.topic import StatItem
from domain.services.verdict_calculator import VerdictCalculator
from services import error_codes
from services.commentary_pools import CLOSING_LINE, CROWD_LINES, MODERATOR_PROMPTS
from services.round_state_machine import RoundStateMachine
from tests.conftest import make_topic

GOALS = StatItem("Goals", 10)


def started(machine, side=Side.A):
    machine.join(side)
    assert machine.start().success
    return machine


class TestStart:
    """Tests for start()."""

    def test_rejected_without_side(self, machine):
        result = machine.start()

        assert not result.success
        assert result.error_code == error_codes.NO_SIDE_JOINED
        assert machine.phase == RoundPhase.IDLE
        assert len(machine.state.moderator_log) == 0

    def test_rejected_without_topic(self, pools, rng):
        machine = RoundStateMachine(None, pools, VerdictCalculator(rng))
        machine.join(Side.A)

        result = machine.start()

        assert result.error_code == error_codes.NO_TOPIC
        assert machine.phase == RoundPhase.IDLE

    def test_enters_round_one_with_opening_prompt(self, machine):
        started(machine)

        assert machine.phase == RoundPhase.ROUND1
        assert machine.state.seconds_remaining == 45
        assert machine.state.moderator_log == [MODERATOR_PROMPTS[0]]
        assert len(machine.state.crowd_log) == 0
        assert machine.state.used_move_keys == []

    def test_rejected_while_running(self, machine):
        started(machine)
        machine.record_move(GOALS)

        result = machine.start()

        assert result.error_code == error_codes.INVALID_PHASE
        assert machine.state.moves_count == 1

    def test_restart_after_verdict_clears_everything(self, machine):
        started(machine)
        machine.record_move(GOALS)
        machine.advance()
        machine.advance()
        assert machine.phase == RoundPhase.VERDICT

        assert machine.start().success

        assert machine.phase == RoundPhase.ROUND1
        assert machine.state.used_move_keys == []
        assert machine.state.verdict_text == ""
        assert machine.verdict is None
        assert machine.state.moderator_log == [MODERATOR_PROMPTS[0]]
        assert len(machine.state.crowd_log) == 0

    def test_join_unset_rejected(self, machine):
        result = machine.join(Side.UNSET)

        assert result.error_code == error_codes.INVALID_SIDE
        assert machine.joined_side == Side.UNSET


class TestRecordMove:
    """Tests for stat drops."""

    def test_move_is_recorded_once(self, machine):
        started(machine)

        first = machine.record_move(GOALS)
        second = machine.record_move(StatItem("Goals", 10))

        assert first.success
        assert first.value == "Goals:10"
        assert second.error_code == error_codes.MOVE_ALREADY_USED
        assert machine.state.used_move_keys == ["Goals:10"]
        assert len(machine.state.crowd_log) == 1

    def test_move_posts_stat_drop_line(self, machine):
        started(machine, Side.B)

        machine.record_move(GOALS)

        assert machine.state.crowd_log.latest() == "Stat drop by Y → Goals:10"

    def test_same_label_different_value_is_new_move(self, machine):
        started(machine)

        machine.record_move(GOALS)
        machine.record_move(StatItem("Goals", 11))

        assert machine.state.moves_latest_first() == ["Goals:11", "Goals:10"]

    def test_rejected_without_side(self, machine):
        result = machine.record_move(GOALS)

        assert result.error_code == error_codes.NO_SIDE_JOINED
        assert machine.state.used_move_keys == []

    def test_rejected_outside_round(self, machine):
        machine.join(Side.A)

        result = machine.record_move(GOALS)

        assert result.error_code == error_codes.INVALID_PHASE
        assert machine.state.used_move_keys == []
        assert len(machine.state.crowd_log) == 0

    def test_rejected_after_verdict(self, machine):
        started(machine)
        machine.advance()
        machine.advance()

        result = machine.record_move(GOALS)

        assert result.error_code == error_codes.INVALID_PHASE
        assert machine.state.moves_count == 0


class TestAdvance:
    """Tests for advance()."""

    def test_round_one_to_round_two(self, machine):
        started(machine)
        machine.state.seconds_remaining = 12

        result = machine.advance()

        assert result.value == RoundPhase.ROUND2
        assert machine.state.seconds_remaining == 45
        assert len(machine.state.moderator_log) == 2
        assert machine.state.moderator_log.latest() in MODERATOR_PROMPTS[1:]

    def test_round_two_to_verdict(self, machine):
        started(machine)
        machine.advance()

        result = machine.advance()

        assert result.value == RoundPhase.VERDICT
        assert machine.state.verdict_text.startswith("Winner: ")
        assert machine.state.moderator_log.latest() == CLOSING_LINE
        assert machine.verdict.score_a + machine.verdict.score_b == 100

    def test_best_moment_is_latest_crowd_line(self, machine):
        started(machine)
        machine.record_move(GOALS)
        machine.advance()
        machine.advance()

        assert machine.state.verdict_text.endswith("Best moment: Stat drop by X → Goals:10")

    def test_best_moment_placeholder_when_crowd_silent(self, machine):
        started(machine)
        machine.advance()
        machine.advance()

        assert machine.state.verdict_text.endswith("Best moment: —")

    def test_idle_advance_is_rejected(self, machine):
        result = machine.advance()

        assert result.error_code == error_codes.INVALID_PHASE
        assert machine.phase == RoundPhase.IDLE

    def test_verdict_advance_is_rejected(self, machine):
        started(machine)
        machine.advance()
        machine.advance()
        verdict_text = machine.state.verdict_text

        result = machine.advance()

        assert not result.success
        assert machine.phase == RoundPhase.VERDICT
        assert machine.state.verdict_text == verdict_text


class TestTicks:
    """Tests for countdown and commentary ticks."""

    def test_countdown_decrements(self, machine):
        started(machine)

        assert machine.tick_countdown() == 44
        assert machine.state.seconds_remaining == 44

    def test_countdown_expiry_advances_round(self, machine):
        started(machine)
        machine.state.seconds_remaining = 1

        machine.tick_countdown()

        assert machine.phase == RoundPhase.ROUND2
        assert machine.state.seconds_remaining == 45

    def test_countdown_expiry_in_round_two_reaches_verdict_once(self, machine):
        transitions = []
        machine.add_listener(lambda old, new: transitions.append(new))
        started(machine)
        machine.advance()
        machine.state.seconds_remaining = 1

        machine.tick_countdown()
        machine.tick_countdown()

        assert machine.phase == RoundPhase.VERDICT
        assert transitions == [RoundPhase.ROUND1, RoundPhase.ROUND2, RoundPhase.VERDICT]

    def test_countdown_ignored_when_idle(self, machine):
        assert machine.tick_countdown() == 45
        assert machine.phase == RoundPhase.IDLE

    def test_commentary_uses_current_persona(self, machine):
        started(machine)
        machine.set_persona(Persona.TALK_RADIO)

        line = machine.tick_commentary()

        assert line in CROWD_LINES[Persona.TALK_RADIO]
        assert machine.state.crowd_log.latest() == line
        assert machine.phase == RoundPhase.ROUND1

    def test_commentary_ignored_when_idle(self, machine):
        assert machine.tick_commentary() is None
        assert len(machine.state.crowd_log) == 0

    def test_logs_are_capped(self, machine):
        started(machine)

        for _ in range(20):
            machine.tick_commentary()

        assert len(machine.state.crowd_log) == 7

    def test_log_capacity_is_configurable(self, topic, pools, rng):
        machine = RoundStateMachine(topic, pools, VerdictCalculator(rng), log_capacity=3)
        started(machine)

        for _ in range(5):
            machine.tick_commentary()

        assert len(machine.state.crowd_log) == 3


class TestListenersAndTopic:
    """Tests for phase listeners and topic switching."""

    def test_failing_listener_does_not_block_transition(self, machine):
        calls = []

        def broken(old, new):
            raise RuntimeError("boom")

        machine.add_listener(broken)
        machine.add_listener(lambda old, new: calls.append((old, new)))
        started(machine)

        assert machine.phase == RoundPhase.ROUND1
        assert calls == [(RoundPhase.IDLE, RoundPhase.ROUND1)]

    def test_set_topic_discards_running_debate(self, machine):
        transitions = []
        machine.add_listener(lambda old, new: transitions.append(new))
        started(machine)
        machine.record_move(GOALS)

        machine.set_topic(make_topic("Other", ("P", "Q")))

        assert machine.phase == RoundPhase.IDLE
        assert machine.state.used_move_keys == []
        assert machine.side_label() == "P"
        assert transitions[-1] == RoundPhase.IDLE

    def test_removed_listener_not_called(self, machine):
        calls = []
        listener = lambda old, new: calls.append(new)  # noqa: E731
        machine.add_listener(listener)
        machine.remove_listener(listener)

        started(machine)

        assert calls == []


def test_end_to_end_scenario(machine):
    """Join A, drop the same stat twice, run both rounds to the verdict."""
    started(machine, Side.A)

    machine.record_move(StatItem("Goals", 10))
    machine.record_move(StatItem("Goals", 10))
    machine.advance()
    machine.advance()

    assert machine.phase == RoundPhase.VERDICT
    assert len(machine.state.used_move_keys) == 1
    assert machine.verdict.tilt == 2
    assert machine.state.verdict_text.startswith("Winner: ")


class TestRecentLog:
    """Tests for the bounded most-recent-first log."""

    def test_newest_entry_first(self):
        log = RecentLog(capacity=3)
        for entry in ("one", "two", "three"):
            log.push(entry)

        assert list(log) == ["three", "two", "one"]
        assert log.latest() == "three"

    def test_full_log_drops_oldest(self):
        log = RecentLog(capacity=2, entries=["b", "a"])

        log.push("c")

        assert list(log) == ["c", "b"]
        assert len(log) == 2

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            RecentLog(capacity=0)
