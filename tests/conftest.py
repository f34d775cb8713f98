import pytest

import session_logic
from app_types import Gender
from session_logic import MatchSession, Player
from tests.utils import make_players


@pytest.fixture(autouse=True)
def sessions_dir(tmp_path, monkeypatch):
    """Keeps SessionManager files out of the working directory."""
    monkeypatch.setattr(session_logic, "SESSIONS_DIR", str(tmp_path / "sessions"))
    return tmp_path / "sessions"


@pytest.fixture
def sample_players():
    """Returns a dictionary of four sample players keyed by id."""
    players = [
        Player(id="alice", name="Alice", gender=Gender.FEMALE, previous_ratios=[4.0] * 5),
        Player(id="bob", name="Bob", gender=Gender.MALE, previous_ratios=[3.0] * 5),
        Player(id="carol", name="Carol", gender=Gender.FEMALE, previous_ratios=[2.0] * 5),
        Player(id="dave", name="Dave", gender=Gender.MALE, previous_ratios=[1.0] * 5),
    ]
    return {p.id: p for p in players}


@pytest.fixture
def twelve_players():
    """Returns 12 players with distinct scores and alternating genders."""
    return make_players(12)


@pytest.fixture
def session(twelve_players):
    """A session with 12 selected players and a generated 3-round schedule."""
    session = MatchSession(players=twelve_players, num_rounds=3, games_per_match=7)
    session.generate_schedule()
    return session
