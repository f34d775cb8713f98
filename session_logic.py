# session_logic.py
import logging
import os
import pickle
import uuid
from dataclasses import dataclass, field

from app_types import (
    Game,
    GameStatus,
    GameType,
    Gender,
    Pair,
    PlayerId,
    Round,
    Schedule,
    SlotLocation,
)
from conflict_service import detect_conflicts
from constants import (
    DEFAULT_GAMES_PER_MATCH,
    DEFAULT_LEVEL,
    DEFAULT_NUM_ROUNDS,
    RATING_WINDOW,
    SCHEDULE_EXISTS_NOTICE,
)
from exceptions import InvalidOperationError, SessionError
from game_service import (
    get_active_player_ids,
    get_scheduled_player_ids,
    has_finished_games,
    list_active_games,
    list_queued_games,
    replace_player,
    set_score,
    swap_players,
    toggle_status,
)
from rating_service import finalize_session, score
from scheduler import generate_schedule
from standings_service import compute_standings

SESSIONS_DIR = "sessions"

logger = logging.getLogger("app.session_logic")


@dataclass
class Player:
    name: str
    gender: Gender = Gender.MALE
    level: str = DEFAULT_LEVEL
    previous_ratios: list[float] = field(default_factory=list)
    id: PlayerId = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        # Records saved without a gender are treated as male
        self.gender = Gender(self.gender) if self.gender else Gender.MALE
        self.previous_ratios = [float(r) for r in (self.previous_ratios or [])][
            -RATING_WINDOW:
        ]

    @property
    def score(self) -> float:
        """Current strength: the sum of the rolling ratings."""
        return score(self)


class SessionManager:
    """Handles loading, saving, and clearing named session states."""

    @staticmethod
    def _get_session_path(session_name: str) -> str:
        """Returns the file path for a given session name."""
        os.makedirs(SESSIONS_DIR, exist_ok=True)
        return os.path.join(SESSIONS_DIR, f"{session_name}.pkl")

    @staticmethod
    def save(session_instance, session_name: str):
        """Saves the given session instance to a named file."""
        path = SessionManager._get_session_path(session_name)
        with open(path, "wb") as f:
            pickle.dump(session_instance, f)
        logger.info(f"Session '{session_name}' saved")

    @staticmethod
    def load(session_name: str):
        """
        Loads a session from a named file if it exists.
        Returns the session object or None.
        """
        path = SessionManager._get_session_path(session_name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "rb") as f:
                session = pickle.load(f)
        except (pickle.UnpicklingError, EOFError):
            logger.warning(f"Failed to load session '{session_name}'. Removing corrupted file.")
            os.remove(path)
            return None
        logger.info(f"Session '{session_name}' loaded")
        return session

    @staticmethod
    def clear(session_name: str):
        """Clears a named session by deleting its file."""
        path = SessionManager._get_session_path(session_name)
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Session '{session_name}' cleared")

    @staticmethod
    def list_sessions():
        """Returns a list of all available session names."""
        if not os.path.exists(SESSIONS_DIR):
            return []
        files = [f for f in os.listdir(SESSIONS_DIR) if f.endswith(".pkl")]
        return [f[:-4] for f in files]  # Remove .pkl extension


class MatchSession:
    """
    Owns one session's roster selection, configuration and schedule.
    This class only contains game logic and no persistence code.

    Derived views (active players, conflicts, standings) are properties so
    they always reflect the schedule as it is now.
    """

    def __init__(
        self,
        players: dict[PlayerId, Player],
        selected_ids: list[PlayerId] | None = None,
        games_per_match: int = DEFAULT_GAMES_PER_MATCH,
        num_rounds: int = DEFAULT_NUM_ROUNDS,
        is_recorded: bool = False,
    ):
        self.player_pool = players
        self.selected_ids = (
            list(selected_ids) if selected_ids is not None else list(players.keys())
        )
        self.games_per_match = games_per_match
        self.num_rounds = num_rounds
        self.is_recorded = is_recorded

        self.schedule: Schedule = []
        self.swap_source: SlotLocation | None = None
        self.error_message = ""

    # ------------------------------------------------------------------ #
    # Schedule
    # ------------------------------------------------------------------ #

    @property
    def has_schedule(self) -> bool:
        return bool(self.schedule)

    def generate_schedule(
        self, num_rounds: int | None = None, games_per_match: int | None = None
    ) -> Schedule:
        """
        Generates a new schedule for the selected players, replacing any
        existing one. Configuration is only applied when generation succeeds.

        Raises:
            ValidationError: If the roster or configuration is not allowed.
        """
        num_rounds = self.num_rounds if num_rounds is None else num_rounds
        games_per_match = (
            self.games_per_match if games_per_match is None else games_per_match
        )

        schedule = generate_schedule(
            self.selected_ids, self.player_pool, num_rounds, games_per_match
        )

        self.num_rounds = num_rounds
        self.games_per_match = games_per_match
        self.schedule = schedule
        self.swap_source = None
        self.error_message = ""
        return schedule

    def reset_schedule(self):
        """Discards the schedule and every result entered in it."""
        self.schedule = []
        self.swap_source = None
        self.error_message = ""

    def get_game(self, round_index: int, game_index: int) -> Game:
        try:
            return self.schedule[round_index].games[game_index]
        except IndexError as e:
            raise SessionError(
                f"No game {game_index} in round {round_index}."
            ) from e

    def toggle_game(self, round_index: int, game_index: int) -> GameStatus:
        return toggle_status(self.get_game(round_index, game_index))

    def enter_score(self, round_index: int, game_index: int, score_a: int):
        set_score(self.get_game(round_index, game_index), score_a, self.games_per_match)

    def select_for_swap(self, location: SlotLocation) -> bool:
        """
        Handles one click on a player slot. The first click records the slot;
        the second swaps the two players.

        Returns True if a swap was performed. Clicking the same slot twice
        just clears the selection.

        Raises:
            InvalidOperationError: If the swap is not allowed. The pending
                selection is cleared either way.
        """
        if self.swap_source is None:
            self.swap_source = location
            return False

        source, self.swap_source = self.swap_source, None
        if source == location:
            return False

        swap_players(self.schedule, source, location, self.player_pool)
        return True

    def cancel_swap(self):
        self.swap_source = None

    @property
    def active_player_ids(self) -> set[PlayerId]:
        return get_active_player_ids(self.schedule)

    @property
    def scheduled_player_ids(self) -> set[PlayerId]:
        return get_scheduled_player_ids(self.schedule)

    @property
    def conflicts(self):
        return detect_conflicts(self.schedule)

    @property
    def has_finished_games(self) -> bool:
        return has_finished_games(self.schedule)

    def active_games(self):
        return list_active_games(self.schedule)

    def queued_games(self):
        return list_queued_games(self.schedule)

    def get_standings(self):
        """Returns the leaderboard of the selected players, best first."""
        return compute_standings(self.schedule, self.player_pool, self.selected_ids)

    # ------------------------------------------------------------------ #
    # Roster
    # ------------------------------------------------------------------ #

    def add_selected(self, player: Player) -> str | None:
        """
        Adds a player to the top of the selection.

        Returns a notice when a schedule already exists; the player is only
        included in matches after the schedule is reset and regenerated.
        """
        if player.id in self.selected_ids:
            raise InvalidOperationError(f"{player.name} is already selected.")

        self.player_pool[player.id] = player
        self.selected_ids.insert(0, player.id)
        return SCHEDULE_EXISTS_NOTICE if self.has_schedule else None

    def check_removable(self, player_id: PlayerId):
        """Raises InvalidOperationError unless the player can be deselected."""
        if player_id not in self.selected_ids:
            raise InvalidOperationError("Player is not selected.")
        if player_id in self.scheduled_player_ids:
            raise InvalidOperationError(
                "Player is already playing. It cannot be deleted. "
                "Try to switch player or reset the matches."
            )

    def remove_selected(self, player_id: PlayerId):
        """Removes a player who does not appear anywhere in the schedule."""
        self.check_removable(player_id)
        self.selected_ids.remove(player_id)

    def edit_player(self, player_id: PlayerId, name: str, gender: Gender) -> Player:
        if not name or not name.strip():
            raise InvalidOperationError("Name cannot be empty")
        player = self.player_pool.get(player_id)
        if player is None:
            raise InvalidOperationError("Player not found.")
        player.name = name.strip()
        player.gender = Gender(gender) if gender else Gender.MALE
        return player

    def substitute_player(self, old_id: PlayerId, new_player: Player) -> int:
        """
        Puts new_player in old_id's place in the selection and in every
        unfinished game. Finished games keep the original player so their
        results still count for them.

        Players who already appear anywhere in the schedule (for example
        after being substituted out) cannot come back in.

        Returns:
            Number of schedule slots replaced.
        """
        if old_id not in self.selected_ids:
            raise InvalidOperationError("Player to replace is not selected.")
        if new_player.id in self.selected_ids:
            raise InvalidOperationError(f"{new_player.name} is already selected.")
        if new_player.id in self.scheduled_player_ids:
            # Still in finished games, so already placed in those rounds
            raise InvalidOperationError(
                f"{new_player.name} already has games in this schedule."
            )

        self.player_pool[new_player.id] = new_player
        self.selected_ids[self.selected_ids.index(old_id)] = new_player.id
        self.swap_source = None

        replaced = sum(
            replace_player(round_, old_id, new_player.id, self.player_pool)
            for round_ in self.schedule
        )
        logger.info(f"Substituted {old_id} with {new_player.id} in {replaced} slot(s)")
        return replaced

    def finalize(self) -> dict[PlayerId, float]:
        """
        Applies this session's ratings to the selected players, then clears
        the selection and the schedule.
        """
        new_ratings = finalize_session(
            self.schedule, self.player_pool, self.selected_ids, self.games_per_match
        )
        self.selected_ids = []
        self.reset_schedule()
        return new_ratings

    # ------------------------------------------------------------------ #
    # Payload
    # ------------------------------------------------------------------ #

    def to_payload(self) -> dict:
        """The session object in the shape the hosting shell stores it."""
        return {
            "gamesPerMatch": self.games_per_match,
            "numOfRounds": self.num_rounds,
            "selected": list(self.selected_ids),
            "games": [_round_to_dict(r) for r in self.schedule],
        }

    def load_payload(self, payload: dict):
        """Restores configuration, selection and schedule from a stored session object.

        Selected ids missing from the player pool are dropped.
        """
        self.games_per_match = payload.get("gamesPerMatch") or self.games_per_match
        self.num_rounds = payload.get("numOfRounds") or self.num_rounds
        self.schedule = [_round_from_dict(r) for r in payload.get("games") or []]
        if "selected" in payload:
            self.selected_ids = [
                pid for pid in payload["selected"] or [] if pid in self.player_pool
            ]
        self.swap_source = None


def _pair_to_dict(pair: Pair) -> dict:
    return {"p1": pair.p1, "p2": pair.p2, "strength": pair.strength}


def _pair_from_dict(data: dict) -> Pair:
    return Pair(p1=data["p1"], p2=data.get("p2"), strength=float(data.get("strength", 0)))


def _round_to_dict(round_: Round) -> dict:
    return {
        "roundNumber": round_.round_number,
        "sitOuts": list(round_.sit_outs),
        "games": [
            {
                "id": g.id,
                "type": g.game_type.value,
                "pairA": _pair_to_dict(g.pair_a),
                "pairB": _pair_to_dict(g.pair_b),
                "status": g.status.value,
                "scoreA": g.score_a,
                "scoreB": g.score_b,
            }
            for g in round_.games
        ],
    }


def _round_from_dict(data: dict) -> Round:
    games = [
        Game(
            id=g["id"],
            game_type=GameType(g.get("type", GameType.DOUBLES.value)),
            pair_a=_pair_from_dict(g["pairA"]),
            pair_b=_pair_from_dict(g["pairB"]),
            status=GameStatus(g.get("status", GameStatus.AWAITING.value)),
            score_a=int(g.get("scoreA") or 0),
            score_b=int(g.get("scoreB") or 0),
        )
        for g in data.get("games", [])
    ]
    return Round(
        round_number=data["roundNumber"],
        games=games,
        sit_outs=list(data.get("sitOuts") or []),
    )
