"""
Tests for the session service layer.

These tests verify that destructive operations are gated by the dialog,
that rejected operations are reported through dialog.alert without changing
the session, and that recorded sessions are synchronized to the database.
"""

import pytest
from unittest.mock import patch

from app_types import Decision, Gender, GameStatus, PairSide, SlotLocation
from constants import SCHEDULE_EXISTS_NOTICE
from database import PlayerDB, SessionDB
from exceptions import DatabaseError
from session_logic import MatchSession, Player, SessionManager
import session_service
from tests.utils import FakeDialog, finish_all_games, make_players

SESSION_NAME = "Test Session"


@pytest.fixture
def recorded_session():
    """A recorded 12-player session with a generated schedule."""
    session = MatchSession(players=make_players(12), is_recorded=True)
    session.generate_schedule()
    return session


# =============================================================================
# Schedule operations
# =============================================================================


def test_generate_schedule_persists_locally(twelve_players):
    session = MatchSession(players=twelve_players)
    dialog = FakeDialog()

    assert session_service.generate_schedule(session, SESSION_NAME, dialog, 3, 5)

    assert dialog.confirms == []  # nothing to replace yet
    assert session.games_per_match == 5
    assert SessionManager.load(SESSION_NAME).schedule == session.schedule


def test_generate_schedule_validation_error_is_stored(twelve_players):
    session = MatchSession(players=twelve_players, selected_ids=list(twelve_players)[:11])

    assert not session_service.generate_schedule(session, SESSION_NAME, FakeDialog())

    assert session.error_message == "For 3 Rounds, you need at least 12 players."
    assert session.schedule == []
    assert SessionManager.load(SESSION_NAME) is None


def test_regenerate_cancelled_keeps_schedule(session):
    finish_all_games(session)
    previous = session.schedule
    dialog = FakeDialog(Decision.CANCELLED)

    assert not session_service.generate_schedule(session, SESSION_NAME, dialog)

    assert dialog.confirms[0][0] == "Regenerate Schedule"
    assert session.schedule is previous
    assert session.has_finished_games


def test_reset_cancelled_changes_nothing(session):
    previous = session.schedule

    assert not session_service.reset_schedule(session, SESSION_NAME, FakeDialog(Decision.CANCELLED))
    assert session.schedule is previous


def test_reset_confirmed_clears_schedule(session):
    assert session_service.reset_schedule(session, SESSION_NAME, FakeDialog())
    assert session.schedule == []


def test_recorded_session_saves_payload(recorded_session):
    with patch.object(SessionDB, "save_session") as mock_save:
        session_service.toggle_game(recorded_session, SESSION_NAME, 0, 0)

    mock_save.assert_called_once()
    name, payload = mock_save.call_args.args
    assert name == SESSION_NAME
    assert payload["games"][0]["games"][0]["status"] == GameStatus.IN_PLAY.value


def test_unrecorded_session_never_touches_database(session):
    with patch.object(SessionDB, "save_session") as mock_save:
        session_service.toggle_game(session, SESSION_NAME, 0, 0)
        session_service.enter_score(session, SESSION_NAME, FakeDialog(), 0, 1, 3)

    mock_save.assert_not_called()


def test_invalid_score_alerts(session):
    dialog = FakeDialog()
    session.enter_score(0, 0, 4)

    assert not session_service.enter_score(session, SESSION_NAME, dialog, 0, 0, 5)

    assert dialog.alerts[0][0] == "Invalid Score"
    assert session.get_game(0, 0).score_a == 4


def test_swap_across_rounds_alerts(session):
    dialog = FakeDialog()
    session_service.handle_swap_selection(
        session, SESSION_NAME, dialog, SlotLocation(0, 0, PairSide.A, 1)
    )
    swapped = session_service.handle_swap_selection(
        session, SESSION_NAME, dialog, SlotLocation(1, 0, PairSide.A, 1)
    )

    assert not swapped
    assert dialog.alerts == [("Invalid Swap", "You can only swap players within the same round.")]
    assert session.swap_source is None


def test_swap_within_round_persists(session):
    dialog = FakeDialog()
    first = session_service.handle_swap_selection(
        session, SESSION_NAME, dialog, SlotLocation(0, 0, PairSide.A, 1)
    )
    second = session_service.handle_swap_selection(
        session, SESSION_NAME, dialog, SlotLocation(0, 1, PairSide.B, 1)
    )

    assert (first, second) == (False, True)
    assert dialog.alerts == []
    assert SessionManager.load(SESSION_NAME).schedule == session.schedule


# =============================================================================
# Roster operations
# =============================================================================


def test_update_selection_persists(twelve_players):
    session = MatchSession(players=twelve_players, is_recorded=True)
    with patch.object(SessionDB, "save_session") as mock_save:
        assert session_service.update_selection(session, SESSION_NAME, FakeDialog(), ["P2", "P1"])

    assert session.selected_ids == ["P2", "P1"]
    assert mock_save.call_args.args[1]["selected"] == ["P2", "P1"]


def test_update_selection_locked_while_scheduled(session):
    dialog = FakeDialog()
    selected = list(session.selected_ids)

    assert not session_service.update_selection(session, SESSION_NAME, dialog, ["P1"])

    assert dialog.alerts[0][0] == "Selection locked"
    assert session.selected_ids == selected


def test_add_new_player_after_generation_notifies(recorded_session):
    dialog = FakeDialog()
    with patch.object(PlayerDB, "upsert_players") as mock_upsert, patch.object(
        SessionDB, "save_session"
    ):
        player = session_service.add_new_player(
            recorded_session, SESSION_NAME, dialog, "Zoe", Gender.FEMALE, "C"
        )

    assert player.previous_ratios == [5.0] * 5
    mock_upsert.assert_called_once_with([player])
    assert recorded_session.selected_ids[0] == player.id
    assert dialog.alerts == [("Adding players", SCHEDULE_EXISTS_NOTICE)]


def test_add_new_player_empty_name(session):
    dialog = FakeDialog()
    selected = list(session.selected_ids)

    assert session_service.add_new_player(session, SESSION_NAME, dialog, "  ") is None

    assert dialog.alerts == [("Validation", "Name cannot be empty")]
    assert session.selected_ids == selected


def test_add_new_player_database_failure(recorded_session):
    dialog = FakeDialog()
    selected = list(recorded_session.selected_ids)
    with patch.object(PlayerDB, "upsert_players", side_effect=DatabaseError("down")):
        result = session_service.add_new_player(recorded_session, SESSION_NAME, dialog, "Zoe")

    assert result is None
    assert dialog.alerts[0][0] == "Database Error"
    assert recorded_session.selected_ids == selected


def test_remove_scheduled_player_alerts_without_confirm(session):
    dialog = FakeDialog()

    assert not session_service.remove_player(session, SESSION_NAME, dialog, "P1")

    assert dialog.confirms == []
    assert dialog.alerts[0][0] == "Player is active"
    assert "P1" in session.selected_ids


def test_remove_player_cancelled(twelve_players):
    session = MatchSession(players=twelve_players)
    dialog = FakeDialog(Decision.CANCELLED)

    assert not session_service.remove_player(session, SESSION_NAME, dialog, "P1")

    assert dialog.confirms[0][0] == "Confirm Delete"
    assert "P1" in session.selected_ids


def test_remove_player_confirmed(twelve_players):
    session = MatchSession(players=twelve_players)

    assert session_service.remove_player(session, SESSION_NAME, FakeDialog(), "P1")
    assert "P1" not in session.selected_ids


def test_edit_player_rolls_back_on_database_error(recorded_session):
    dialog = FakeDialog()
    with patch.object(PlayerDB, "upsert_players", side_effect=DatabaseError("down")):
        ok = session_service.edit_player(
            recorded_session, SESSION_NAME, dialog, "P1", "Renamed", Gender.FEMALE
        )

    assert not ok
    player = recorded_session.player_pool["P1"]
    assert (player.name, player.gender) == ("P1", Gender.MALE)


def test_substitute_cancelled_changes_nothing(session):
    sub = Player(id="sub", name="Sub")
    before = [list(g.player_ids) for r in session.schedule for g in r.games]
    dialog = FakeDialog(Decision.CANCELLED)

    assert not session_service.substitute_player(session, SESSION_NAME, dialog, "P1", sub)

    assert dialog.confirms == [("Confirm Replacement", "Replace P1 with Sub?")]
    assert "sub" not in session.player_pool
    assert [list(g.player_ids) for r in session.schedule for g in r.games] == before


def test_substitute_confirmed(session):
    sub = Player(id="sub", name="Sub")

    assert session_service.substitute_player(session, SESSION_NAME, FakeDialog(), "P1", sub)
    assert "sub" in session.selected_ids
    assert "P1" not in {pid for r in session.schedule for g in r.games for pid in g.player_ids}


# =============================================================================
# Finalize
# =============================================================================


def test_finalize_cancelled_changes_nothing(session):
    finish_all_games(session)
    ratios = {pid: list(p.previous_ratios) for pid, p in session.player_pool.items()}

    result = session_service.finalize_session(session, SESSION_NAME, FakeDialog(Decision.CANCELLED))

    assert result is None
    assert session.has_schedule
    assert {pid: p.previous_ratios for pid, p in session.player_pool.items()} == ratios


def test_finalize_saves_updated_players(recorded_session):
    finish_all_games(recorded_session, score_a=7)
    with patch.object(PlayerDB, "upsert_players") as mock_upsert, patch.object(
        SessionDB, "save_session"
    ):
        new_ratings = session_service.finalize_session(recorded_session, SESSION_NAME, FakeDialog())

    saved = mock_upsert.call_args.args[0]
    assert {p.id for p in saved} == set(new_ratings)
    assert recorded_session.selected_ids == []
    assert recorded_session.schedule == []


def test_finalize_rolls_back_on_database_error(recorded_session):
    finish_all_games(recorded_session)
    ratios = {pid: list(p.previous_ratios) for pid, p in recorded_session.player_pool.items()}
    selected = list(recorded_session.selected_ids)
    schedule = recorded_session.schedule
    dialog = FakeDialog()

    with patch.object(PlayerDB, "upsert_players", side_effect=DatabaseError("down")):
        result = session_service.finalize_session(recorded_session, SESSION_NAME, dialog)

    assert result is None
    assert dialog.alerts[0][0] == "Database Error"
    assert recorded_session.selected_ids == selected
    assert recorded_session.schedule is schedule
    assert {pid: p.previous_ratios for pid, p in recorded_session.player_pool.items()} == ratios


# =============================================================================
# Resuming and resetting recorded sessions
# =============================================================================


def test_reset_recorded_session_deletes_cloud_copy(recorded_session):
    with patch.object(SessionDB, "delete_session") as mock_delete:
        session_service.reset_schedule(recorded_session, SESSION_NAME, FakeDialog())

    mock_delete.assert_called_once_with(SESSION_NAME)


def test_load_session_prefers_local_copy(session):
    SessionManager.save(session, SESSION_NAME)
    with patch.object(SessionDB, "get_session") as mock_get:
        loaded = session_service.load_session(SESSION_NAME, session.player_pool, is_recorded=True)

    mock_get.assert_not_called()
    assert loaded.schedule == session.schedule


def test_load_session_from_cloud_payload(session):
    session.enter_score(0, 0, 5)
    payload = session.to_payload()
    with patch.object(SessionDB, "get_session", return_value=payload):
        loaded = session_service.load_session(SESSION_NAME, session.player_pool, is_recorded=True)

    assert loaded.is_recorded
    assert loaded.schedule == session.schedule
    assert loaded.selected_ids == session.selected_ids
    assert loaded.get_game(0, 0).score_a == 5


def test_cloud_resume_keeps_substituted_player_out(session):
    session.enter_score(0, 0, 5)
    old_id = session.get_game(0, 0).player_ids[0]
    session.substitute_player(old_id, Player(id="sub", name="Sub"))
    payload = session.to_payload()

    with patch.object(SessionDB, "get_session", return_value=payload):
        loaded = session_service.load_session(SESSION_NAME, session.player_pool, is_recorded=True)

    assert len(loaded.selected_ids) == 12
    assert old_id not in loaded.selected_ids
    assert "sub" in loaded.selected_ids
    assert old_id not in {row.player_id for row in loaded.get_standings()}


def test_load_missing_unrecorded_session(twelve_players):
    assert session_service.load_session("Nope", twelve_players) is None
