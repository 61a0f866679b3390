"""Per-player play, win, and loss tallies for a finished schedule."""

from __future__ import annotations

from typing import List, Mapping, Sequence, TypedDict

from .scheduler import MatchCard, Player

WINNERS = ("A", "B")


class PlayerStat(TypedDict):
    id: str
    name: str
    color: str | None
    gender: str
    play_count: int
    wins: int
    losses: int


def compute_stats(
    players: Sequence[Player],
    schedule: Sequence[MatchCard],
    match_results: Mapping[str, str | None],
) -> List[PlayerStat]:
    """Return stats for every roster player, sorted by name.

    Matches without a recorded winner only count as played. Results keyed by
    unknown match ids and winners other than ``"A"``/``"B"`` are ignored.
    """
    play_counts = {player["id"]: 0 for player in players}
    wins = dict.fromkeys(play_counts, 0)
    losses = dict.fromkeys(play_counts, 0)

    for match in schedule:
        team_a, team_b = match["team_a"], match["team_b"]
        for player_id in (*team_a, *team_b):
            if player_id in play_counts:
                play_counts[player_id] += 1

        winner = match_results.get(match["id"])
        if winner not in WINNERS:
            continue
        winning, losing = (team_a, team_b) if winner == "A" else (team_b, team_a)
        for player_id in winning:
            if player_id in wins:
                wins[player_id] += 1
        for player_id in losing:
            if player_id in losses:
                losses[player_id] += 1

    stats = [
        PlayerStat(
            id=player["id"],
            name=player["name"],
            color=player.get("color"),
            gender=player.get("gender") or "",
            play_count=play_counts[player["id"]],
            wins=wins[player["id"]],
            losses=losses[player["id"]],
        )
        for player in players
    ]
    stats.sort(key=lambda stat: (stat["name"].casefold(), stat["name"]))
    return stats
