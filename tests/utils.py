from collections import Counter

from app_types import Decision, Gender, Schedule
from session_logic import Player


def make_players(n, gender=None, base=0.1):
    """
    Generates N players P1..Pn keyed by id, strongest first.

    Scores are distinct (P1 highest). Genders alternate unless one is given.

    Returns:
        Dict mapping player ids to Player objects.
    """
    players = {}
    for i in range(1, n + 1):
        pid = f"P{i}"
        g = gender or (Gender.MALE if i % 2 == 1 else Gender.FEMALE)
        ratio = round(base * (n + 1 - i), 3)
        players[pid] = Player(id=pid, name=pid, gender=g, previous_ratios=[ratio] * 5)
    return players


def player_counts_per_round(schedule: Schedule):
    """Yields a Counter of player appearances for each round."""
    for round_ in schedule:
        yield Counter(pid for game in round_.games for pid in game.player_ids)


def finish_all_games(session, score_a=4):
    """Enters the same score for every game of the session."""
    for r_idx, round_ in enumerate(session.schedule):
        for g_idx in range(len(round_.games)):
            session.enter_score(r_idx, g_idx, score_a)


class FakeDialog:
    """Dialog double that records calls and answers confirm with a fixed decision."""

    def __init__(self, decision=Decision.CONFIRMED):
        self.decision = decision
        self.confirms = []
        self.alerts = []

    def confirm(self, title, message):
        self.confirms.append((title, message))
        return self.decision

    def alert(self, title, message):
        self.alerts.append((title, message))
