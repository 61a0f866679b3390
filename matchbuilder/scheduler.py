"""Round-robin doubles scheduling with teammate and opponent variety."""

from __future__ import annotations

import itertools
import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple, TypedDict

logger = logging.getLogger(__name__)

PLAYERS_PER_MATCH = 4
DEFAULT_POOL_CAP = 10

Team = Tuple[str, str]


class _PlayerIdentity(TypedDict):
    id: str
    name: str


class Player(_PlayerIdentity, total=False):
    color: str | None
    gender: str


class MatchCard(TypedDict):
    id: str
    index: int
    round: int
    team_a: Team
    team_b: Team


@dataclass(frozen=True)
class ScoringWeights:
    teammate: float = 5.0
    opponent: float = 2.0
    balance: float = 1.5
    jitter: float = 0.1


DEFAULT_WEIGHTS = ScoringWeights()


def canonical_pair_key(id_a: str, id_b: str) -> str:
    """Return an order-independent key for two player ids."""
    first, second = sorted((id_a, id_b))
    return f"{first}|{second}"


@dataclass
class CounterState:
    """Tallies for one scheduling run. Only ``commit`` mutates them."""

    play_counts: dict[str, int] = field(default_factory=dict)
    teammate_counts: dict[str, int] = field(default_factory=dict)
    opponent_counts: dict[str, int] = field(default_factory=dict)

    def plays(self, player_id: str) -> int:
        return self.play_counts.get(player_id, 0)

    def teammates(self, id_a: str, id_b: str) -> int:
        return self.teammate_counts.get(canonical_pair_key(id_a, id_b), 0)

    def opponents(self, id_a: str, id_b: str) -> int:
        return self.opponent_counts.get(canonical_pair_key(id_a, id_b), 0)

    def commit(self, team_a: Team, team_b: Team) -> None:
        for player_id in (*team_a, *team_b):
            self.play_counts[player_id] = self.plays(player_id) + 1

        for team in (team_a, team_b):
            key = canonical_pair_key(*team)
            self.teammate_counts[key] = self.teammate_counts.get(key, 0) + 1

        for player_id in team_a:
            for opponent_id in team_b:
                key = canonical_pair_key(player_id, opponent_id)
                self.opponent_counts[key] = self.opponent_counts.get(key, 0) + 1


def score_pairing(
    team_a: Team,
    team_b: Team,
    counters: CounterState,
    rng: random.Random,
    *,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Cost of playing ``team_a`` against ``team_b`` next; lower is better."""
    plays = [counters.plays(player_id) for player_id in (*team_a, *team_b)]
    score = float(sum(plays))

    score += weights.teammate * (counters.teammates(*team_a) + counters.teammates(*team_b))
    score += weights.opponent * sum(
        counters.opponents(player_id, opponent_id) for player_id in team_a for opponent_id in team_b
    )
    score += weights.balance * (max(plays) - min(plays))

    return score + rng.random() * weights.jitter


def four_player_combinations(candidates: Sequence[Player]) -> Iterable[Tuple[Player, ...]]:
    return itertools.combinations(candidates, PLAYERS_PER_MATCH)


def _team_splits(ids: Sequence[str]) -> List[Tuple[Team, Team]]:
    a, b, c, d = ids
    return [
        ((a, b), (c, d)),
        ((a, c), (b, d)),
        ((a, d), (b, c)),
    ]


def pick_best_match(
    pool: Sequence[Player],
    counters: CounterState,
    rng: random.Random,
    *,
    pool_cap: int = DEFAULT_POOL_CAP,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Tuple[Team, Team] | None:
    """Return the cheapest 2-vs-2 split among the least-played players in ``pool``."""
    if len(pool) < PLAYERS_PER_MATCH:
        return None

    ordered = sorted(pool, key=lambda player: (counters.plays(player["id"]), rng.random()))
    candidates = ordered[: min(len(ordered), max(pool_cap, PLAYERS_PER_MATCH))]

    best: Tuple[Team, Team] | None = None
    best_score = float("inf")
    for combo in four_player_combinations(candidates):
        for team_a, team_b in _team_splits([player["id"] for player in combo]):
            score = score_pairing(team_a, team_b, counters, rng, weights=weights)
            if score < best_score:
                best_score = score
                best = (team_a, team_b)

    logger.debug("Selected %s from %d candidates (cost %.3f)", best, len(candidates), best_score)
    return best


def _card_id(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def generate_schedule(
    players: Sequence[Player],
    rounds: int,
    courts: int,
    *,
    rng: random.Random | None = None,
    pool_cap: int = DEFAULT_POOL_CAP,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> List[MatchCard]:
    """Build ``rounds`` waves of doubles matches across up to ``courts`` courts.

    Each round uses a player at most once. Fewer than four players yields an
    empty schedule, and generation stops early once a round cannot seat a match.
    """
    rng = rng or random.Random()
    if len(players) < PLAYERS_PER_MATCH:
        return []

    counters = CounterState(play_counts={player["id"]: 0 for player in players})
    usable_courts = max(1, min(courts, len(players) // PLAYERS_PER_MATCH))
    schedule: List[MatchCard] = []

    for round_number in range(1, rounds + 1):
        used_this_round: set[str] = set()
        built = 0

        for _ in range(usable_courts):
            available = [player for player in players if player["id"] not in used_this_round]
            if len(available) < PLAYERS_PER_MATCH:
                break

            teams = pick_best_match(available, counters, rng, pool_cap=pool_cap, weights=weights)
            if teams is None:
                break
            team_a, team_b = teams
            counters.commit(team_a, team_b)
            used_this_round.update((*team_a, *team_b))

            schedule.append(
                MatchCard(
                    id=_card_id(rng),
                    index=len(schedule) + 1,
                    round=round_number,
                    team_a=team_a,
                    team_b=team_b,
                )
            )
            built += 1

        if built == 0:
            break

    logger.info(
        "Generated %d matches for %d players (%d rounds requested, %d courts usable)",
        len(schedule),
        len(players),
        rounds,
        usable_courts,
    )
    return schedule


def group_rounds(schedule: Iterable[MatchCard]) -> List[List[MatchCard]]:
    """Regroup a flattened schedule into its rounds, preserving order."""
    grouped: List[List[MatchCard]] = []
    for _, cards in itertools.groupby(schedule, key=lambda card: card["round"]):
        grouped.append(list(cards))
    return grouped
