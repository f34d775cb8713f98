# scheduler.py
"""
Schedule generation: pairing players, matching pairs into games, and
repeating that for every round of a session.

Pairing is greedy strongest-first: the strongest remaining player takes the
weakest eligible partner they have not partnered yet this schedule,
preferring a partner of the other gender. Pairs are then matched in strength
order (1st vs 2nd, 3rd vs 4th, ...). An odd leftover pair is split into a
singles game between its two members.

Avoiding repeat partners is best effort only; when every remaining candidate
is a previous partner the weakest one is taken anyway and the repeat is left
for the conflict check to report.
"""

import logging
from typing import Protocol, Sequence

from app_types import (
    Game,
    GameType,
    Gender,
    Pair,
    PartnerHistory,
    PlayerId,
    Round,
    Schedule,
)
from constants import (
    GAMES_PER_MATCH_OPTIONS,
    MAX_PLAYERS,
    ROUND_OPTIONS,
    ROUND_PLAYER_THRESHOLDS,
)
from exceptions import ValidationError
from logger import log_round_debug
from rating_service import score

logger = logging.getLogger("app.scheduler")


class RosterPlayer(Protocol):
    gender: Gender
    previous_ratios: list[float]


Roster = dict[PlayerId, RosterPlayer]


def validate_schedule_request(
    num_players: int, num_rounds: int, games_per_match: int
) -> None:
    """Checks a generation request, stopping at the first failed rule.

    Raises:
        ValidationError: With a message suitable for showing inline.
    """
    if games_per_match not in GAMES_PER_MATCH_OPTIONS:
        options = ", ".join(str(o) for o in GAMES_PER_MATCH_OPTIONS)
        raise ValidationError(f"Games per match must be one of {options}.")
    if num_rounds not in ROUND_OPTIONS:
        options = ", ".join(str(o) for o in ROUND_OPTIONS)
        raise ValidationError(f"Number of rounds must be one of {options}.")

    if num_players == 0:
        raise ValidationError("No players selected.")
    # Round minimums come before parity: with 11 players and 3 rounds both rules
    # fail, and the message asks for 12 players rather than an even count
    for min_rounds, max_excluded in ROUND_PLAYER_THRESHOLDS:
        if num_rounds >= min_rounds and num_players <= max_excluded:
            raise ValidationError(
                f"For {min_rounds} Rounds, you need at least {max_excluded + 1} players."
            )
    if num_players % 2 != 0:
        raise ValidationError("Number of players must be even.")
    if num_players > MAX_PLAYERS:
        raise ValidationError(f"Maximum {MAX_PLAYERS} players allowed.")


def _choose_partner_index(
    p1: PlayerId,
    candidates: list[PlayerId],
    roster: Roster,
    partner_history: PartnerHistory,
) -> int:
    """Index into candidates of p1's partner (candidates sorted strongest first)."""
    previous_partners = partner_history.get(p1, set())
    p1_gender = roster[p1].gender
    weakest_eligible = None

    for i in range(len(candidates) - 1, -1, -1):
        candidate = candidates[i]
        if candidate in previous_partners:
            continue
        if weakest_eligible is None:
            weakest_eligible = i
        if roster[candidate].gender != p1_gender:
            return i

    if weakest_eligible is not None:
        return weakest_eligible

    # Everyone left is a previous partner: forced repeat with the weakest
    logger.debug(f"Forced repeat partnership for {p1}")
    return len(candidates) - 1


def pair_players(
    player_ids: Sequence[PlayerId],
    roster: Roster,
    partner_history: PartnerHistory,
) -> list[Pair]:
    """Splits one round's players into two-person pairs.

    Args:
        player_ids: Every player of the round (even count)
        roster: Player records by id
        partner_history: Partnerships from earlier rounds; updated in place

    Returns:
        Pairs in the order they were formed.
    """
    # sorted() is stable, so equal scores keep their roster order
    candidates = sorted(player_ids, key=lambda pid: score(roster[pid]), reverse=True)
    pairs = []

    while len(candidates) >= 2:
        p1 = candidates.pop(0)
        p2 = candidates.pop(_choose_partner_index(p1, candidates, roster, partner_history))

        partner_history.setdefault(p1, set()).add(p2)
        partner_history.setdefault(p2, set()).add(p1)
        pairs.append(
            Pair(p1=p1, p2=p2, strength=score(roster[p1]) + score(roster[p2]))
        )

    return pairs


def build_games(pairs: Sequence[Pair], roster: Roster) -> list[Game]:
    """Matches pairs of adjacent strength into games.

    A leftover pair becomes a singles game with its two members as opponents.
    """
    remaining = sorted(pairs, key=lambda p: p.strength, reverse=True)
    games = []

    while len(remaining) >= 2:
        pair_a = remaining.pop(0)
        pair_b = remaining.pop(0)
        games.append(Game(pair_a=pair_a, pair_b=pair_b, game_type=GameType.DOUBLES))

    if remaining:
        leftover = remaining.pop(0)
        games.append(
            Game(
                pair_a=Pair(p1=leftover.p1, strength=score(roster[leftover.p1])),
                pair_b=Pair(p1=leftover.p2, strength=score(roster[leftover.p2])),
                game_type=GameType.SINGLES,
            )
        )

    return games


def generate_one_round(
    round_number: int,
    player_ids: Sequence[PlayerId],
    roster: Roster,
    partner_history: PartnerHistory,
) -> Round:
    """Pairs and matches every player for a single round."""
    pairs = pair_players(player_ids, roster, partner_history)
    games = build_games(pairs, roster)
    log_round_debug(logger, round_number, pairs, games)
    return Round(round_number=round_number, games=games, sit_outs=[])


def generate_schedule(
    player_ids: Sequence[PlayerId],
    roster: Roster,
    num_rounds: int,
    games_per_match: int,
) -> Schedule:
    """Generates a complete schedule for the selected players.

    Partner history is shared by all rounds of this call, so later rounds
    steer away from partnerships formed earlier.

    Args:
        player_ids: Selected players
        roster: Player records by id
        num_rounds: Number of rounds (3, 5 or 7)
        games_per_match: Games per match (5, 7 or 11)

    Returns:
        A new schedule with num_rounds rounds.

    Raises:
        ValidationError: If the roster size or configuration is not allowed.
    """
    validate_schedule_request(len(player_ids), num_rounds, games_per_match)

    partner_history: PartnerHistory = {pid: set() for pid in player_ids}
    schedule = [
        generate_one_round(round_number, player_ids, roster, partner_history)
        for round_number in range(1, num_rounds + 1)
    ]

    logger.info(
        f"Generated {num_rounds} round(s) for {len(player_ids)} players "
        f"({games_per_match} games per match)"
    )
    return schedule
