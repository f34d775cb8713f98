# game_service.py
"""
Live-play operations on a generated schedule: the per-game status cycle,
score entry, manual swaps, and the views derived from game status.

Status cycle (manual toggle):
    awaiting -> in_play -> awaiting
    finished -> awaiting (entered scores are discarded)
Score entry moves any unfinished game straight to finished.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from app_types import Game, GameStatus, Pair, PlayerId, Round, Schedule, SlotLocation
from exceptions import InvalidOperationError
from rating_service import score

logger = logging.getLogger("app.game_service")


class RatedPlayer(Protocol):
    previous_ratios: list[float]


@dataclass
class GameRef:
    """A game together with its position in the schedule."""

    round_index: int
    game_index: int
    round_number: int
    game: Game


# =============================================================================
# Game Lifecycle
# =============================================================================


def toggle_status(game: Game) -> GameStatus:
    """Advances the manual status cycle and returns the new status."""
    if game.status == GameStatus.AWAITING:
        game.status = GameStatus.IN_PLAY
    elif game.status == GameStatus.IN_PLAY:
        game.status = GameStatus.AWAITING
    else:
        game.status = GameStatus.AWAITING
        game.score_a = 0
        game.score_b = 0
    return game.status


def set_score(game: Game, score_a: int, games_per_match: int) -> None:
    """Records side A's games; side B gets the rest and the game finishes.

    Raises:
        InvalidOperationError: If the game is already finished or score_a
            is outside 0..games_per_match.
    """
    if game.status == GameStatus.FINISHED:
        raise InvalidOperationError(
            "Game is already finished. Reopen it before entering a new score."
        )
    if not 0 <= score_a <= games_per_match:
        raise InvalidOperationError(
            f"Score must be between 0 and {games_per_match}."
        )

    game.score_a = score_a
    game.score_b = games_per_match - score_a
    game.status = GameStatus.FINISHED


def iter_games(schedule: Schedule):
    """Yields a GameRef for every game, in schedule order."""
    for r_idx, round_ in enumerate(schedule):
        for g_idx, game in enumerate(round_.games):
            yield GameRef(r_idx, g_idx, round_.round_number, game)


def get_active_player_ids(schedule: Schedule) -> set[PlayerId]:
    """Players currently on court (in any in-play game)."""
    return {
        pid
        for ref in iter_games(schedule)
        if ref.game.status == GameStatus.IN_PLAY
        for pid in ref.game.player_ids
    }


def get_scheduled_player_ids(schedule: Schedule) -> set[PlayerId]:
    """Every player appearing anywhere in the schedule."""
    return {pid for ref in iter_games(schedule) for pid in ref.game.player_ids}


def has_finished_games(schedule: Schedule) -> bool:
    return any(ref.game.status == GameStatus.FINISHED for ref in iter_games(schedule))


def list_active_games(schedule: Schedule) -> list[GameRef]:
    """Games currently in play across all rounds."""
    return [ref for ref in iter_games(schedule) if ref.game.status == GameStatus.IN_PLAY]


def list_queued_games(schedule: Schedule) -> list[GameRef]:
    """Awaiting games whose players are all off court, i.e. ready to start."""
    active = get_active_player_ids(schedule)
    return [
        ref
        for ref in iter_games(schedule)
        if ref.game.status == GameStatus.AWAITING
        and not active.intersection(ref.game.player_ids)
    ]


# =============================================================================
# Swaps
# =============================================================================


def recompute_strength(pair: Pair, roster: dict[PlayerId, RatedPlayer]) -> float:
    """Sets and returns the pair's strength from its current members."""
    pair.strength = sum(score(roster[pid]) for pid in pair.members)
    return pair.strength


def _game_at(schedule: Schedule, location: SlotLocation) -> Game:
    try:
        return schedule[location.round_index].games[location.game_index]
    except IndexError as e:
        raise InvalidOperationError(f"No game at {location}.") from e


def _get_slot(pair: Pair, slot: int) -> PlayerId | None:
    return pair.p1 if slot == 1 else pair.p2


def _set_slot(pair: Pair, slot: int, player_id: PlayerId) -> None:
    if slot == 1:
        pair.p1 = player_id
    else:
        pair.p2 = player_id


def validate_swap(
    schedule: Schedule, source: SlotLocation, target: SlotLocation
) -> None:
    """Raises InvalidOperationError if the two slots cannot be exchanged."""
    source_game = _game_at(schedule, source)
    target_game = _game_at(schedule, target)

    if GameStatus.FINISHED in (source_game.status, target_game.status):
        raise InvalidOperationError("Cannot swap players in a finished game.")
    if source.round_index != target.round_index:
        raise InvalidOperationError("You can only swap players within the same round.")
    if source == target:
        raise InvalidOperationError("Select two different players to swap.")
    if (
        _get_slot(source_game.pair(source.side), source.slot) is None
        or _get_slot(target_game.pair(target.side), target.slot) is None
    ):
        raise InvalidOperationError("Cannot swap with an empty slot.")


def swap_players(
    schedule: Schedule,
    source: SlotLocation,
    target: SlotLocation,
    roster: dict[PlayerId, RatedPlayer],
) -> None:
    """Exchanges the players at two slots of the same round.

    Both touched pairs get their strength recomputed. Swapping the same two
    slots again restores the original arrangement.

    Raises:
        InvalidOperationError: If the swap is not allowed; nothing is changed.
    """
    validate_swap(schedule, source, target)

    source_pair = _game_at(schedule, source).pair(source.side)
    target_pair = _game_at(schedule, target).pair(target.side)
    source_id = _get_slot(source_pair, source.slot)
    target_id = _get_slot(target_pair, target.slot)

    _set_slot(source_pair, source.slot, target_id)
    _set_slot(target_pair, target.slot, source_id)

    recompute_strength(source_pair, roster)
    recompute_strength(target_pair, roster)
    logger.info(
        f"Swapped {source_id} and {target_id} in round {source.round_index + 1}"
    )


def replace_player(
    round_: Round, old_id: PlayerId, new_id: PlayerId, roster: dict[PlayerId, RatedPlayer]
) -> int:
    """Replaces old_id with new_id in the round's unfinished games.

    Returns:
        Number of slots replaced.
    """
    replaced = 0
    for game in round_.games:
        if game.status == GameStatus.FINISHED:
            continue
        for pair in (game.pair_a, game.pair_b):
            for slot in (1, 2):
                if _get_slot(pair, slot) == old_id:
                    _set_slot(pair, slot, new_id)
                    recompute_strength(pair, roster)
                    replaced += 1
    return replaced
