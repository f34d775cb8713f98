import pandas as pd

from app_types import Game, GameStatus, GameType, Gender, Pair, Round
from session_logic import Player
from standings_service import compute_standings, create_standings_dataframe, tally_results
from tests.utils import finish_all_games


def finished(game, score_a, score_b):
    game.status = GameStatus.FINISHED
    game.score_a, game.score_b = score_a, score_b
    return game


def test_only_finished_games_count(sample_players):
    schedule = [
        Round(
            1,
            [
                finished(Game(Pair("alice", "dave"), Pair("bob", "carol")), 5, 2),
            ],
        ),
        Round(
            2,
            [
                Game(Pair("alice", "bob"), Pair("carol", "dave"), status=GameStatus.IN_PLAY, score_a=3),
            ],
        ),
    ]
    points, played = tally_results(schedule)

    assert points == {"alice": 5, "dave": 5, "bob": 2, "carol": 2}
    assert played == {"alice": 1, "dave": 1, "bob": 1, "carol": 1}


def test_singles_credit_sole_member(sample_players):
    game = Game(Pair("alice"), Pair("bob"), game_type=GameType.SINGLES)
    schedule = [Round(1, [finished(game, 3, 4)])]

    points, played = tally_results(schedule)

    assert points == {"alice": 3, "bob": 4}
    assert played == {"alice": 1, "bob": 1}


def test_standings_include_every_selected_player(sample_players):
    schedule = [
        Round(
            1,
            [finished(Game(Pair("alice"), Pair("bob"), game_type=GameType.SINGLES), 1, 6)],
        )
    ]
    rows = compute_standings(schedule, sample_players, ["alice", "bob", "carol", "dave"])

    assert [r.name for r in rows] == ["Bob", "Alice", "Carol", "Dave"]
    assert [r.points for r in rows] == [6, 1, 0, 0]
    assert [r.played for r in rows] == [1, 1, 0, 0]


def test_ties_sorted_by_name_case_insensitive():
    roster = {
        "1": Player(id="1", name="bea"),
        "2": Player(id="2", name="Adam"),
        "3": Player(id="3", name="Cleo", gender=Gender.FEMALE),
    }
    rows = compute_standings([], roster, ["3", "1", "2"])

    assert [r.name for r in rows] == ["Adam", "bea", "Cleo"]
    assert rows[2].gender == Gender.FEMALE


def test_total_points_equal_finished_scores(session):
    finish_all_games(session, score_a=5)
    # Reopen one game so it stops counting
    session.toggle_game(1, 0)

    rows = session.get_standings()
    expected = sum(
        g.score_a * len(g.pair_a.members) + g.score_b * len(g.pair_b.members)
        for r in session.schedule
        for g in r.games
        if g.status == GameStatus.FINISHED
    )
    assert sum(r.points for r in rows) == expected
    assert sum(r.played for r in rows) == 8 * 4


def test_standings_dataframe():
    roster = {"1": Player(id="1", name="Ann", gender=Gender.FEMALE)}
    df = create_standings_dataframe(compute_standings([], roster, ["1"]))

    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == ["Player", "Gender", "Points", "Played"]
    assert df.index[0] == 1
    assert df.iloc[0]["Gender"] == "Female"
