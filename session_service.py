"""
Service layer for orchestrating session operations that involve domain
logic, user confirmation and persistence.

This module sits between the UI (pages) and the lower-level logic/database
modules, so the same rules apply whether an operation comes from the UI or
from tests. Destructive operations ask the dialog first and change nothing
when the answer is CANCELLED. Invalid operations are reported through
dialog.alert and leave the session untouched.
"""

import logging

from app_types import Decision, Dialog, Gender, PlayerId, SlotLocation
from constants import DEFAULT_LEVEL
from database import SessionDB
from exceptions import DatabaseError, InvalidOperationError, ValidationError
from player_service import create_player, sync_players_to_database
from session_logic import MatchSession, Player, SessionManager

logger = logging.getLogger("app.session_service")


def persist_session(session: MatchSession, session_name: str) -> None:
    """
    Saves the session locally and, for recorded sessions, to the cloud.

    Raises:
        DatabaseError: If the cloud save fails.
    """
    SessionManager.save(session, session_name)
    if session.is_recorded:
        SessionDB.save_session(session_name, session.to_payload())


def _confirmed(dialog: Dialog, title: str, message: str) -> bool:
    return dialog.confirm(title, message) == Decision.CONFIRMED


def load_session(
    session_name: str, players: dict[PlayerId, Player], is_recorded: bool = False
) -> MatchSession | None:
    """
    Resumes a named session from the local save, falling back to the
    stored cloud copy for recorded sessions.

    Returns:
        The session, or None if neither copy exists.

    Raises:
        DatabaseError: If the cloud lookup fails.
    """
    session = SessionManager.load(session_name)
    if session is not None:
        return session
    if not is_recorded:
        return None

    payload = SessionDB.get_session(session_name)
    if payload is None:
        return None

    session = MatchSession(players=players, selected_ids=[], is_recorded=True)
    session.load_payload(payload)
    logger.info(f"Session '{session_name}' restored from database")
    return session


# =============================================================================
# Schedule
# =============================================================================


def generate_schedule(
    session: MatchSession,
    session_name: str,
    dialog: Dialog,
    num_rounds: int | None = None,
    games_per_match: int | None = None,
) -> bool:
    """
    Generates the schedule, asking first if one already exists.

    Validation failures are stored in session.error_message for inline
    display.

    Returns:
        True if a new schedule was generated.
    """
    if session.has_schedule and not _confirmed(
        dialog,
        "Regenerate Schedule",
        "This will replace the current schedule and discard all scores. Are you sure?",
    ):
        return False

    try:
        session.generate_schedule(num_rounds=num_rounds, games_per_match=games_per_match)
    except ValidationError as e:
        session.error_message = str(e)
        logger.warning(f"Schedule generation rejected: {e}")
        return False

    conflicts = session.conflicts
    if conflicts.has_conflicts:
        logger.info(f"Generated schedule has repeated partners: {conflicts.repeated_pairs}")

    persist_session(session, session_name)
    return True


def reset_schedule(session: MatchSession, session_name: str, dialog: Dialog) -> bool:
    """
    Deletes the schedule after confirmation, including the stored cloud
    copy for recorded sessions. Returns True if reset.

    Raises:
        DatabaseError: If the cloud delete fails.
    """
    if not _confirmed(
        dialog,
        "Reset Schedule",
        "Are you sure? This will delete the current schedule from the cloud.",
    ):
        return False

    session.reset_schedule()
    SessionManager.save(session, session_name)
    if session.is_recorded:
        SessionDB.delete_session(session_name)
    return True


def toggle_game(
    session: MatchSession, session_name: str, round_index: int, game_index: int
) -> None:
    session.toggle_game(round_index, game_index)
    persist_session(session, session_name)


def enter_score(
    session: MatchSession,
    session_name: str,
    dialog: Dialog,
    round_index: int,
    game_index: int,
    score_a: int,
) -> bool:
    """Records a score; returns False (after alerting) if it was rejected."""
    try:
        session.enter_score(round_index, game_index, score_a)
    except InvalidOperationError as e:
        dialog.alert("Invalid Score", str(e))
        return False

    persist_session(session, session_name)
    return True


def handle_swap_selection(
    session: MatchSession, session_name: str, dialog: Dialog, location: SlotLocation
) -> bool:
    """
    Feeds one slot click into the swap selection.

    Returns:
        True if two players were swapped.
    """
    try:
        swapped = session.select_for_swap(location)
    except InvalidOperationError as e:
        dialog.alert("Invalid Swap", str(e))
        return False

    if swapped:
        persist_session(session, session_name)
    return swapped


# =============================================================================
# Roster
# =============================================================================


def update_selection(
    session: MatchSession, session_name: str, dialog: Dialog, selected_ids: list[PlayerId]
) -> bool:
    """
    Replaces the selected players. Only allowed while there is no schedule.

    Returns:
        True if the selection was saved.
    """
    if session.has_schedule:
        dialog.alert(
            "Selection locked",
            "Reset the schedule on the session page before changing the selection.",
        )
        return False

    session.selected_ids = [pid for pid in selected_ids if pid in session.player_pool]
    persist_session(session, session_name)
    return True


def add_existing_player(
    session: MatchSession, session_name: str, dialog: Dialog, player: Player
) -> bool:
    """Adds a registry player to the selection."""
    try:
        notice = session.add_selected(player)
    except InvalidOperationError as e:
        dialog.alert("Adding players", str(e))
        return False

    if notice:
        dialog.alert("Adding players", notice)
    persist_session(session, session_name)
    return True


def add_new_player(
    session: MatchSession,
    session_name: str,
    dialog: Dialog,
    name: str,
    gender: Gender = Gender.MALE,
    level: str = DEFAULT_LEVEL,
) -> Player | None:
    """
    Creates a player, saves them to the registry, and selects them.

    Returns:
        The new Player, or None if creation or the registry save failed.
    """
    try:
        player = create_player(name, gender, level)
    except InvalidOperationError as e:
        dialog.alert("Validation", str(e))
        return None

    if session.is_recorded:
        try:
            sync_players_to_database([player])
        except DatabaseError as e:
            logger.error(f"Failed to save new player {player.name}: {e}")
            dialog.alert("Database Error", f"Failed to save player: {e}")
            return None

    if not add_existing_player(session, session_name, dialog, player):
        return None
    return player


def remove_player(
    session: MatchSession, session_name: str, dialog: Dialog, player_id: PlayerId
) -> bool:
    """Removes a player who is not in the schedule, after confirmation."""
    try:
        session.check_removable(player_id)
    except InvalidOperationError as e:
        dialog.alert("Player is active", str(e))
        return False

    if not _confirmed(dialog, "Confirm Delete", "Are you sure you want delete this player?"):
        return False

    session.remove_selected(player_id)
    persist_session(session, session_name)
    return True


def edit_player(
    session: MatchSession,
    session_name: str,
    dialog: Dialog,
    player_id: PlayerId,
    name: str,
    gender: Gender,
) -> bool:
    """Renames a player / changes their gender."""
    player = session.player_pool.get(player_id)
    previous = (player.name, player.gender) if player else None
    try:
        session.edit_player(player_id, name, gender)
    except InvalidOperationError as e:
        dialog.alert("Validation", str(e))
        return False

    if session.is_recorded:
        try:
            sync_players_to_database([player])
        except DatabaseError as e:
            player.name, player.gender = previous
            dialog.alert("Database Error", f"Failed to save player: {e}")
            return False

    persist_session(session, session_name)
    return True


def substitute_player(
    session: MatchSession,
    session_name: str,
    dialog: Dialog,
    old_id: PlayerId,
    new_player: Player,
) -> bool:
    """Replaces a selected player with another one, after confirmation."""
    old_player = session.player_pool.get(old_id)
    old_name = old_player.name if old_player else old_id
    if not _confirmed(
        dialog, "Confirm Replacement", f"Replace {old_name} with {new_player.name}?"
    ):
        return False

    try:
        session.substitute_player(old_id, new_player)
    except InvalidOperationError as e:
        dialog.alert("Invalid Replacement", str(e))
        return False

    persist_session(session, session_name)
    return True


def finalize_session(
    session: MatchSession, session_name: str, dialog: Dialog
) -> dict[PlayerId, float] | None:
    """
    Closes the session: appends each player's session rating to their
    history, saves the players, and clears the selection and schedule.

    The session and players are rolled back if the registry save fails.

    Returns:
        Mapping of updated player ids to their new rating, or None if the
        user cancelled or the save failed.
    """
    if not _confirmed(
        dialog,
        "Finalize Session",
        "This will calculate player stats, update their history, and clear "
        "the current list. Are you sure?",
    ):
        return None

    ratio_backup = {pid: list(p.previous_ratios) for pid, p in session.player_pool.items()}
    selected_backup = list(session.selected_ids)
    schedule_backup = session.schedule

    new_ratings = session.finalize()

    if session.is_recorded and new_ratings:
        try:
            sync_players_to_database([session.player_pool[pid] for pid in new_ratings])
        except DatabaseError as e:
            logger.error(f"Failed to save finalized ratings: {e}. Rolling back.")
            for pid, ratios in ratio_backup.items():
                session.player_pool[pid].previous_ratios = ratios
            session.selected_ids = selected_backup
            session.schedule = schedule_backup
            dialog.alert("Database Error", f"Failed to save player ratings: {e}")
            return None

    persist_session(session, session_name)
    return new_ratings
