"""
Database operations for the Rotation Scheduler.

This module handles all Supabase interactions for the player registry and
the stored session object ({gamesPerMatch, numOfRounds, games}).
All methods translate Supabase exceptions to DatabaseError for consistent
error handling.
"""

import logging

import streamlit as st
from supabase import create_client, Client

from exceptions import DatabaseError
from session_logic import Player
from app_types import Gender

logger = logging.getLogger("app.database")


# Initialize Supabase client
@st.cache_resource
def get_supabase_client() -> Client:
    url = st.secrets["SUPABASE_URL"]
    key = st.secrets["SUPABASE_KEY"]
    return create_client(url, key)


def player_to_row(player: Player) -> dict:
    """Converts a Player to a 'players' table row."""
    return {
        "id": player.id,
        "name": player.name,
        "gender": player.gender.value,
        "level": player.level,
        "previous5ratio": list(player.previous_ratios),
    }


def row_to_player(row: dict) -> Player:
    """Converts a 'players' table row to a Player."""
    return Player(
        id=row["id"],
        name=row["name"],
        gender=Gender(row["gender"]) if row.get("gender") else Gender.MALE,
        level=row.get("level") or "B",
        previous_ratios=row.get("previous5ratio") or [],
    )


class PlayerDB:
    """Handles player persistence in Supabase."""

    @staticmethod
    def get_all_players() -> dict[str, Player]:
        """Fetches all players from the Supabase 'players' table.

        Returns:
            Dict mapping player ids to Player objects, ordered by name.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            supabase = get_supabase_client()
            response = supabase.table("players").select("*").order("name").execute()
        except Exception as e:
            logger.exception("Supabase API call failed: get_all_players")
            raise DatabaseError("Failed to fetch players from database") from e

        players = [row_to_player(row) for row in response.data or []]
        return {p.id: p for p in players}

    @staticmethod
    def upsert_players(players: list[Player]) -> None:
        """Inserts new players and updates existing ones, keyed by id.

        Args:
            players: Players to save.

        Raises:
            DatabaseError: If the upsert fails.
        """
        if not players:
            return

        rows = [player_to_row(p) for p in players]
        try:
            supabase = get_supabase_client()
            supabase.table("players").upsert(rows, on_conflict="id").execute()
        except Exception as e:
            logger.exception("Supabase API call failed: upsert_players")
            raise DatabaseError("Failed to save players to database") from e

        logger.info(f"Saved {len(rows)} player(s) to database")


class SessionDB:
    """Handles the stored session object in Supabase."""

    @staticmethod
    def get_session(session_name: str) -> dict | None:
        """Retrieves a stored session object by name.

        Returns:
            The session payload, or None if not found.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            supabase = get_supabase_client()
            response = (
                supabase.table("sessions")
                .select("*")
                .eq("name", session_name)
                .execute()
            )
        except Exception as e:
            logger.exception(f"Supabase API call failed: get_session '{session_name}'")
            raise DatabaseError(f"Failed to retrieve session '{session_name}'") from e

        if response.data:
            return response.data[0]["data"]
        return None

    @staticmethod
    def save_session(session_name: str, payload: dict) -> None:
        """Replaces the stored session object for session_name.

        Raises:
            DatabaseError: If the upsert fails.
        """
        try:
            supabase = get_supabase_client()
            supabase.table("sessions").upsert(
                {"name": session_name, "data": payload}, on_conflict="name"
            ).execute()
        except Exception as e:
            logger.exception(f"Supabase API call failed: save_session '{session_name}'")
            raise DatabaseError(f"Failed to save session '{session_name}'") from e

    @staticmethod
    def delete_session(session_name: str) -> None:
        """Deletes the stored session object for session_name.

        Raises:
            DatabaseError: If the delete fails.
        """
        try:
            supabase = get_supabase_client()
            supabase.table("sessions").delete().eq("name", session_name).execute()
        except Exception as e:
            logger.exception(f"Supabase API call failed: delete_session '{session_name}'")
            raise DatabaseError(f"Failed to delete session '{session_name}'") from e
