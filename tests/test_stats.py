import random

from matchbuilder.scheduler import generate_schedule
from matchbuilder.stats import compute_stats


PLAYERS = [
    {"id": "d", "name": "dana", "color": "#4CF3FF", "gender": "female"},
    {"id": "a", "name": "Alex", "color": "#F2A6FF", "gender": "male"},
    {"id": "c", "name": "Casey"},
    {"id": "b", "name": "Blair"},
    {"id": "e", "name": "Emery"},
]

SCHEDULE = [
    {"id": "m1", "index": 1, "round": 1, "team_a": ("a", "b"), "team_b": ("c", "d")},
    {"id": "m2", "index": 2, "round": 2, "team_a": ("a", "c"), "team_b": ("b", "e")},
    {"id": "m3", "index": 3, "round": 3, "team_a": ("a", "e"), "team_b": ("d", "c")},
]


def _by_id(stats):
    return {stat["id"]: stat for stat in stats}


def test_unscored_schedule_only_counts_plays():
    stats = _by_id(compute_stats(PLAYERS, SCHEDULE, {}))

    assert {player_id: stat["play_count"] for player_id, stat in stats.items()} == {
        "a": 3,
        "b": 2,
        "c": 3,
        "d": 2,
        "e": 2,
    }
    assert all(stat["wins"] == 0 and stat["losses"] == 0 for stat in stats.values())


def test_recorded_winners_assign_wins_and_losses():
    stats = _by_id(compute_stats(PLAYERS, SCHEDULE, {"m1": "A", "m2": "B"}))

    assert (stats["a"]["wins"], stats["a"]["losses"]) == (1, 1)
    assert (stats["b"]["wins"], stats["b"]["losses"]) == (2, 0)
    assert (stats["c"]["wins"], stats["c"]["losses"]) == (0, 2)
    assert (stats["d"]["wins"], stats["d"]["losses"]) == (0, 1)
    assert (stats["e"]["wins"], stats["e"]["losses"]) == (1, 0)
    assert stats["a"]["play_count"] == 3


def test_unknown_matches_and_winners_are_ignored():
    baseline = compute_stats(PLAYERS, SCHEDULE, {"m3": "A"})
    noisy = compute_stats(PLAYERS, SCHEDULE, {"m3": "A", "missing": "B", "m1": "C", "m2": None})
    assert noisy == baseline


def test_players_outside_roster_are_skipped():
    schedule = SCHEDULE + [{"id": "m4", "index": 4, "round": 4, "team_a": ("a", "x"), "team_b": ("y", "b")}]
    stats = compute_stats(PLAYERS, schedule, {"m4": "B"})

    assert {stat["id"] for stat in stats} == {"a", "b", "c", "d", "e"}
    assert _by_id(stats)["b"]["wins"] == 1
    assert _by_id(stats)["a"]["losses"] == 1


def test_stats_sorted_by_name_case_insensitively():
    stats = compute_stats(PLAYERS, SCHEDULE, {})
    assert [stat["name"] for stat in stats] == ["Alex", "Blair", "Casey", "dana", "Emery"]
    assert stats[0]["color"] == "#F2A6FF"
    assert stats[1]["gender"] == ""


def test_compute_stats_is_idempotent_and_matches_schedule():
    players = [{"id": f"p{index}", "name": f"Player {index}"} for index in range(9)]
    schedule = generate_schedule(players, rounds=5, courts=2, rng=random.Random(21))
    results = {card["id"]: "A" if card["index"] % 2 else "B" for card in schedule}

    first = compute_stats(players, schedule, results)
    second = compute_stats(players, schedule, results)
    assert first == second

    for stat in first:
        appearances = sum(stat["id"] in (*card["team_a"], *card["team_b"]) for card in schedule)
        assert stat["play_count"] == appearances
        assert stat["wins"] + stat["losses"] == appearances
