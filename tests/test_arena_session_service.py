"""
Tests for per-channel arena sessions.
"""

from PIL import Image

from domain.models.debate import Persona, RoundPhase, Side
from services import error_codes
from services.arena_session_service import ArenaSessionService
from services.topic_catalog import TopicCatalog
from tests.conftest import TEST_CHANNEL_ID, TEST_CHANNEL_ID_SECONDARY


def joined_and_started(service, channel_id=TEST_CHANNEL_ID, side="a"):
    assert service.join_side(channel_id, side).success
    assert service.start(channel_id).success


class TestSessions:
    """Tests for the session registry."""

    def test_session_created_on_first_use(self, arena_service):
        assert not arena_service.has_session(TEST_CHANNEL_ID)

        session = arena_service.get_session(TEST_CHANNEL_ID)

        assert arena_service.has_session(TEST_CHANNEL_ID)
        assert session.topic.title == "X vs Y"
        assert session.state.phase == RoundPhase.IDLE
        assert session.machine.persona == Persona.ROWDY_PUB

    def test_initial_index_from_catalog(self, catalog, clock):
        catalog = TopicCatalog(catalog.topics, initial_index="1")
        service = ArenaSessionService(catalog, clock=clock)

        assert service.get_session(TEST_CHANNEL_ID).topic.title == "Best summer signing"

    def test_channels_are_isolated(self, arena_service, clock):
        joined_and_started(arena_service, TEST_CHANNEL_ID)

        other = arena_service.get_session(TEST_CHANNEL_ID_SECONDARY)
        clock.advance(5)

        assert other.state.phase == RoundPhase.IDLE
        assert other.state.seconds_remaining == 45
        assert arena_service.get_session(TEST_CHANNEL_ID).state.seconds_remaining == 40

    def test_close_stops_timers(self, arena_service, clock):
        joined_and_started(arena_service)

        arena_service.close(TEST_CHANNEL_ID)

        assert clock.active_timers == 0
        assert not arena_service.has_session(TEST_CHANNEL_ID)

    def test_close_unknown_channel_is_noop(self, arena_service):
        arena_service.close(999)

    def test_close_all(self, arena_service, clock):
        joined_and_started(arena_service, TEST_CHANNEL_ID)
        joined_and_started(arena_service, TEST_CHANNEL_ID_SECONDARY)
        assert clock.active_timers == 4

        arena_service.close_all()

        assert clock.active_timers == 0


class TestSelection:
    """Tests for topic, persona and side selection."""

    def test_select_topic(self, arena_service):
        result = arena_service.select_topic(TEST_CHANNEL_ID, 1)

        assert result.success
        session = arena_service.get_session(TEST_CHANNEL_ID)
        assert session.topic_index == 1
        assert session.topic.sides == ("Rice", "Bellingham")

    def test_select_topic_out_of_range(self, arena_service):
        result = arena_service.select_topic(TEST_CHANNEL_ID, 5)

        assert result.error_code == error_codes.TOPIC_NOT_FOUND
        assert arena_service.get_session(TEST_CHANNEL_ID).topic_index == 0

    def test_select_topic_empty_catalog(self, clock):
        service = ArenaSessionService(TopicCatalog(), clock=clock)

        assert service.select_topic(TEST_CHANNEL_ID, 0).error_code == error_codes.EMPTY_CATALOG

    def test_topic_switch_mid_round_resets_and_stops_timers(self, arena_service, clock):
        joined_and_started(arena_service)
        arena_service.record_move(TEST_CHANNEL_ID, 1)

        arena_service.select_topic(TEST_CHANNEL_ID, 1)

        state = arena_service.get_session(TEST_CHANNEL_ID).state
        assert state.phase == RoundPhase.IDLE
        assert state.used_move_keys == []
        assert clock.active_timers == 0

    def test_set_persona_by_name(self, arena_service):
        result = arena_service.set_persona(TEST_CHANNEL_ID, "talk radio")

        assert result.value == Persona.TALK_RADIO
        assert arena_service.get_session(TEST_CHANNEL_ID).machine.persona == Persona.TALK_RADIO

    def test_set_unknown_persona(self, arena_service):
        result = arena_service.set_persona(TEST_CHANNEL_ID, "Pirate Radio")

        assert result.error_code == error_codes.INVALID_PERSONA
        assert arena_service.get_session(TEST_CHANNEL_ID).machine.persona == Persona.ROWDY_PUB

    def test_join_side(self, arena_service):
        assert arena_service.join_side(TEST_CHANNEL_ID, "B").value == Side.B
        assert arena_service.join_side(TEST_CHANNEL_ID, Side.A).value == Side.A

    def test_join_invalid_side(self, arena_service):
        assert arena_service.join_side(TEST_CHANNEL_ID, "c").error_code == error_codes.INVALID_SIDE
        assert arena_service.join_side(TEST_CHANNEL_ID, "unset").error_code == error_codes.INVALID_SIDE


class TestRoundOperations:
    """Tests for start / record_move / end_round."""

    def test_start_without_side(self, arena_service, clock):
        result = arena_service.start(TEST_CHANNEL_ID)

        assert result.error_code == error_codes.NO_SIDE_JOINED
        assert clock.active_timers == 0

    def test_start_with_empty_catalog(self, clock):
        service = ArenaSessionService(TopicCatalog(), clock=clock)
        service.join_side(TEST_CHANNEL_ID, "a")

        assert service.start(TEST_CHANNEL_ID).error_code == error_codes.NO_TOPIC

    def test_record_move_by_number(self, arena_service):
        arena_service.select_topic(TEST_CHANNEL_ID, 1)
        joined_and_started(arena_service)

        result = arena_service.record_move(TEST_CHANNEL_ID, 3)

        assert result.value == "Pundit rating:8.9"

    def test_record_move_out_of_range(self, arena_service):
        joined_and_started(arena_service)

        assert arena_service.record_move(TEST_CHANNEL_ID, 0).error_code == error_codes.MOVE_NOT_FOUND
        assert arena_service.record_move(TEST_CHANNEL_ID, 2).error_code == error_codes.MOVE_NOT_FOUND

    def test_end_round_twice_reaches_verdict(self, arena_service):
        joined_and_started(arena_service)

        assert arena_service.end_round(TEST_CHANNEL_ID).value == RoundPhase.ROUND2
        assert arena_service.end_round(TEST_CHANNEL_ID).value == RoundPhase.VERDICT
        assert not arena_service.end_round(TEST_CHANNEL_ID).success

    def test_phase_listener(self, arena_service):
        seen = []
        arena_service.add_phase_listener(TEST_CHANNEL_ID, lambda old, new: seen.append(new))

        joined_and_started(arena_service)

        assert seen == [RoundPhase.ROUND1]


class TestThumbnails:
    """Tests for rendering and exporting thumbnails."""

    def test_render_thumbnail(self, arena_service):
        result = arena_service.render_thumbnail(TEST_CHANNEL_ID)

        assert result.success
        assert Image.open(result.value).size == (1280, 720)
        assert arena_service.get_session(TEST_CHANNEL_ID).last_thumbnail is not None

    def test_render_without_topic(self, clock):
        service = ArenaSessionService(TopicCatalog(), clock=clock)

        assert service.render_thumbnail(TEST_CHANNEL_ID).error_code == error_codes.NO_TOPIC

    def test_start_discards_previous_thumbnail(self, arena_service):
        arena_service.render_thumbnail(TEST_CHANNEL_ID)

        joined_and_started(arena_service)

        assert arena_service.get_session(TEST_CHANNEL_ID).last_thumbnail is None

    def test_export_thumbnail(self, arena_service, tmp_path):
        rendered = arena_service.render_thumbnail(TEST_CHANNEL_ID).unwrap()

        result = arena_service.export_thumbnail(TEST_CHANNEL_ID, now_ms=123)

        assert result.success
        assert result.value == tmp_path / "thumbs" / "arena-thumb-123.png"
        assert result.value.read_bytes() == rendered.getvalue()

    def test_export_before_render_is_rejected(self, arena_service, tmp_path):
        result = arena_service.export_thumbnail(TEST_CHANNEL_ID, now_ms=123)

        assert result.error_code == error_codes.NO_THUMBNAIL
        assert not (tmp_path / "thumbs").exists()

    def test_export_after_new_debate_is_rejected(self, arena_service, tmp_path):
        arena_service.render_thumbnail(TEST_CHANNEL_ID)
        joined_and_started(arena_service)

        result = arena_service.export_thumbnail(TEST_CHANNEL_ID, now_ms=123)

        assert result.error_code == error_codes.NO_THUMBNAIL
        assert not (tmp_path / "thumbs").exists()

    def test_export_after_topic_switch_is_rejected(self, arena_service):
        arena_service.render_thumbnail(TEST_CHANNEL_ID)
        arena_service.select_topic(TEST_CHANNEL_ID, 1)

        assert arena_service.export_thumbnail(TEST_CHANNEL_ID).error_code == error_codes.NO_THUMBNAIL

    def test_export_without_topic(self, clock, tmp_path):
        service = ArenaSessionService(TopicCatalog(), clock=clock, export_dir=tmp_path)

        result = service.export_thumbnail(TEST_CHANNEL_ID)

        assert result.error_code == error_codes.NO_TOPIC
        assert list(tmp_path.iterdir()) == []


def test_end_to_end_scenario(arena_service, clock):
    """Join A, drop Goals:10 twice, end both rounds, then run a second debate on the clock."""
    assert arena_service.set_persona(TEST_CHANNEL_ID, "rowdy_pub").value == Persona.ROWDY_PUB
    joined_and_started(arena_service, side="a")

    arena_service.record_move(TEST_CHANNEL_ID, 1)
    second = arena_service.record_move(TEST_CHANNEL_ID, 1)
    arena_service.end_round(TEST_CHANNEL_ID)
    arena_service.end_round(TEST_CHANNEL_ID)

    session = arena_service.get_session(TEST_CHANNEL_ID)
    assert second.error_code == error_codes.MOVE_ALREADY_USED
    assert session.state.phase == RoundPhase.VERDICT
    assert len(session.state.used_move_keys) == 1
    assert session.machine.verdict.tilt == 2
    assert session.state.verdict_text.startswith("Winner: ")

    assert arena_service.start(TEST_CHANNEL_ID).success
    clock.advance(90)
    assert session.state.phase == RoundPhase.VERDICT
    assert session.machine.verdict.tilt == 0
