"""
Service layer for player registry operations.

This module handles creating players, conversion between the registry and
the UI DataFrames, and keeping the cloud database in sync.
"""

import logging

import pandas as pd

from app_types import Gender, PlayerId
from constants import DEFAULT_LEVEL, LEVEL_SEED_RATIOS
from database import PlayerDB
from exceptions import InvalidOperationError
from session_logic import Player

logger = logging.getLogger("app.player_service")


def create_player(name: str, gender: Gender = Gender.MALE, level: str = DEFAULT_LEVEL) -> Player:
    """
    Creates a new player whose history is seeded from their level.

    Raises:
        InvalidOperationError: If the name is empty or the level unknown.
    """
    if not name or not name.strip():
        raise InvalidOperationError("Name cannot be empty")
    if level not in LEVEL_SEED_RATIOS:
        raise InvalidOperationError(f"Unknown level '{level}'")

    return Player(
        name=name.strip(),
        gender=gender,
        level=level,
        previous_ratios=list(LEVEL_SEED_RATIOS[level]),
    )


def search_players(
    players: dict[PlayerId, Player], query: str, exclude_ids: set[PlayerId] | None = None
) -> list[Player]:
    """Players whose name contains query (case-insensitive), minus exclude_ids."""
    if not query:
        return []
    exclude_ids = exclude_ids or set()
    needle = query.lower()
    return [
        p
        for p in players.values()
        if needle in p.name.lower() and p.id not in exclude_ids
    ]


def create_roster_dataframe(
    players: dict[PlayerId, Player], selected_ids: list[PlayerId]
) -> pd.DataFrame:
    """Creates the selection table for the setup page.

    Selected players come first, in selection order, then everybody else.
    """
    selected = set(selected_ids)
    ordered = [players[pid] for pid in selected_ids if pid in players] + [
        p for p in players.values() if p.id not in selected
    ]
    return pd.DataFrame(
        {
            "Selected": [p.id in selected for p in ordered],
            "Player Name": [p.name for p in ordered],
            "Gender": [p.gender.value for p in ordered],
            "Level": [p.level for p in ordered],
            "Score": [round(p.score, 1) for p in ordered],
            "id": [p.id for p in ordered],
        },
        columns=["Selected", "Player Name", "Gender", "Level", "Score", "id"],
    )


def dataframe_to_selection(edited_df: pd.DataFrame) -> list[PlayerId]:
    """Reads the ticked rows of an edited roster table, in table order."""
    if edited_df.empty:
        return []
    ticked = edited_df[edited_df["Selected"].fillna(False).astype(bool)]
    return [str(pid) for pid in ticked["id"].tolist()]


def sync_players_to_database(players: list[Player]) -> None:
    """
    Saves new or changed players to the registry.

    Raises:
        DatabaseError: If the upsert fails.
    """
    PlayerDB.upsert_players(players)
    logger.info(f"Synced {len(players)} player(s) to database")
