from __future__ import annotations

import logging
import os
import random

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Field, Session, SQLModel, select

from .database import (
    MatchSession,
    Player,
    ScheduledMatch,
    fetch_match_sessions,
    fetch_roster,
    fetch_session_matches,
    get_session,
)
from .roster import (
    DEFAULT_COURTS,
    DEFAULT_PLAYERS,
    DEFAULT_ROUNDS,
    GENDERS,
    MAX_COURTS,
    MAX_PLAYERS,
    MAX_ROUNDS,
    RosterError,
    build_default_players,
    clamp,
    clean_name,
    court_number,
    normalize_court_numbers,
    normalize_players,
    pick_next_color,
    shorten_name,
)
from .scheduler import DEFAULT_POOL_CAP, generate_schedule, group_rounds
from .stats import WINNERS, compute_stats

router = APIRouter()

logger = logging.getLogger(__name__)
POOL_CAP = int(os.getenv("MATCHBUILDER_POOL_CAP", str(DEFAULT_POOL_CAP)))


class PlayerCreate(SQLModel):
    name: str
    color: str | None = None
    gender: str = ""


class PlayerUpdate(SQLModel):
    name: str | None = None
    color: str | None = None
    gender: str | None = None


class DefaultRosterRequest(SQLModel):
    count: int = DEFAULT_PLAYERS


class SessionCreate(SQLModel):
    rounds: int = DEFAULT_ROUNDS
    courts: int = DEFAULT_COURTS
    player_ids: list[str] | None = None
    court_numbers: list[int] | None = None
    seed: int | None = None


class MatchResultUpdate(SQLModel):
    winner: str | None = Field(default=None)


def _player_payload(player: Player) -> dict[str, object]:
    return {
        "id": player.id,
        "name": player.name,
        "color": player.color,
        "gender": player.gender,
    }


def _match_payload(match: ScheduledMatch, court: int | None = None) -> dict[str, object]:
    card = match.to_card()
    return {
        "id": match.id,
        "card_id": card["id"],
        "index": card["index"],
        "round": card["round"],
        "court": court,
        "team_a": list(card["team_a"]),
        "team_b": list(card["team_b"]),
        "winner": match.winner,
    }


def _get_player(session: Session, player_id: str) -> Player:
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


def _get_match_session(session: Session, session_id: int) -> MatchSession:
    match_session = session.get(MatchSession, session_id)
    if not match_session:
        raise HTTPException(status_code=404, detail="Session not found")
    return match_session


def _session_roster(match_session: MatchSession) -> list[dict[str, object]]:
    return [dict(player) for player in match_session.players]


def _match_court(session: Session, match: ScheduledMatch) -> int:
    match_session = _get_match_session(session, match.session_id)
    same_round = [
        other.id
        for other in fetch_session_matches(session, match.session_id)
        if other.round_number == match.round_number
    ]
    return court_number(match_session.court_numbers, same_round.index(match.id))


@router.get("/players", name="list_players")
async def list_players(session: Session = Depends(get_session)):
    return [_player_payload(player) for player in fetch_roster(session)]


@router.post("/players", status_code=201, name="create_player")
async def create_player(payload: PlayerCreate, session: Session = Depends(get_session)):
    roster = fetch_roster(session)
    if len(roster) >= MAX_PLAYERS:
        raise HTTPException(status_code=400, detail=f"Roster is limited to {MAX_PLAYERS} players")

    entries = [_player_payload(player) for player in roster]
    color = payload.color or pick_next_color(entries, len(roster))
    entries.append({"name": payload.name, "color": color, "gender": payload.gender})
    try:
        normalized = normalize_players(entries)
    except RosterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if len(normalized) == len(roster):
        raise HTTPException(status_code=400, detail="Player name is required")

    new_player = normalized[-1]
    player = Player(
        id=new_player["id"],
        name=new_player["name"],
        color=new_player.get("color"),
        gender=new_player.get("gender", ""),
    )
    session.add(player)
    session.commit()
    session.refresh(player)
    logger.info("Added player %s", player.name)
    return _player_payload(player)


@router.post("/players/defaults", status_code=201, name="create_default_players")
async def create_default_players(payload: DefaultRosterRequest, session: Session = Depends(get_session)):
    if fetch_roster(session):
        raise HTTPException(status_code=400, detail="Roster already has players")

    count = clamp(payload.count, 0, MAX_PLAYERS)
    for entry in build_default_players(count):
        session.add(Player(id=entry["id"], name=entry["name"], color=entry["color"], gender=""))
    session.commit()
    logger.info("Seeded %d default players", count)
    return [_player_payload(player) for player in fetch_roster(session)]


@router.patch("/players/{player_id}", name="update_player")
async def update_player(player_id: str, payload: PlayerUpdate, session: Session = Depends(get_session)):
    player = _get_player(session, player_id)

    if payload.name is not None:
        name = clean_name(payload.name)
        if not name:
            raise HTTPException(status_code=400, detail="Player name is required")
        clash = session.exec(select(Player).where(Player.id != player.id)).all()
        if any(other.name.casefold() == name.casefold() for other in clash):
            raise HTTPException(status_code=400, detail=f"Duplicate player name: {name}")
        player.name = name
    if payload.gender is not None:
        gender = payload.gender.lower()
        if gender not in GENDERS:
            raise HTTPException(status_code=400, detail=f"Unknown gender: {payload.gender}")
        player.gender = gender
    if payload.color is not None:
        player.color = payload.color or None

    session.add(player)
    session.commit()
    session.refresh(player)
    return _player_payload(player)


@router.delete("/players/{player_id}", status_code=204, name="delete_player")
async def delete_player(player_id: str, session: Session = Depends(get_session)):
    player = _get_player(session, player_id)
    name = player.name
    session.delete(player)
    session.commit()
    logger.info("Removed player %s", name)


@router.post("/sessions", status_code=201, name="create_session")
async def create_session(payload: SessionCreate, session: Session = Depends(get_session)):
    roster = fetch_roster(session)
    if payload.player_ids is not None:
        lookup = {player.id: player for player in roster}
        missing = [player_id for player_id in payload.player_ids if player_id not in lookup]
        if missing:
            raise HTTPException(status_code=404, detail=f"Unknown players: {', '.join(missing)}")
        roster = [lookup[player_id] for player_id in dict.fromkeys(payload.player_ids)]

    rounds = clamp(payload.rounds, 1, MAX_ROUNDS)
    courts = clamp(payload.courts, 1, MAX_COURTS)
    rng = random.Random(payload.seed)
    cards = generate_schedule(
        [player.to_payload() for player in roster], rounds, courts, rng=rng, pool_cap=POOL_CAP
    )

    match_session = MatchSession(
        rounds=rounds,
        courts=courts,
        seed=payload.seed,
        players=[_player_payload(player) for player in roster],
        court_numbers=normalize_court_numbers(payload.court_numbers),
    )
    session.add(match_session)
    session.commit()
    session.refresh(match_session)

    for card in cards:
        session.add(ScheduledMatch.from_card(match_session.id, card))
    session.commit()
    logger.info("Session %s scheduled %d matches", match_session.id, len(cards))
    return _session_payload(session, match_session)


def _session_payload(session: Session, match_session: MatchSession) -> dict[str, object]:
    matches = fetch_session_matches(session, match_session.id)
    by_id = {match.card_id: match for match in matches}
    rounds = [
        [
            _match_payload(by_id[card["id"]], court_number(match_session.court_numbers, position))
            for position, card in enumerate(cards)
        ]
        for cards in group_rounds(match.to_card() for match in matches)
    ]
    return {
        "id": match_session.id,
        "rounds_requested": match_session.rounds,
        "courts_requested": match_session.courts,
        "seed": match_session.seed,
        "court_numbers": list(match_session.court_numbers),
        "created_at": match_session.created_at.isoformat(),
        "players": _session_roster(match_session),
        "match_count": len(matches),
        "rounds": rounds,
    }


@router.get("/sessions", name="list_sessions")
async def list_sessions(session: Session = Depends(get_session)):
    return [_session_payload(session, match_session) for match_session in fetch_match_sessions(session)]


@router.get("/sessions/{session_id}", name="get_session_schedule")
async def get_session_schedule(session_id: int, session: Session = Depends(get_session)):
    match_session = _get_match_session(session, session_id)
    return _session_payload(session, match_session)


@router.delete("/sessions/{session_id}", status_code=204, name="delete_session")
async def delete_session(session_id: int, session: Session = Depends(get_session)):
    match_session = _get_match_session(session, session_id)
    for match in fetch_session_matches(session, session_id):
        session.delete(match)
    session.delete(match_session)
    session.commit()


@router.post("/matches/{match_id}/result", name="record_result")
async def record_result(match_id: int, payload: MatchResultUpdate, session: Session = Depends(get_session)):
    match = session.get(ScheduledMatch, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")

    winner = payload.winner.upper() if payload.winner else None
    if winner is not None and winner not in WINNERS:
        logger.warning("Rejected winner %r for match %s", payload.winner, match_id)
        raise HTTPException(status_code=400, detail="Winner must be 'A', 'B', or null")

    match.winner = winner
    session.add(match)
    session.commit()
    session.refresh(match)
    return _match_payload(match, _match_court(session, match))


@router.get("/sessions/{session_id}/stats", name="session_stats")
async def session_stats(session_id: int, session: Session = Depends(get_session)):
    match_session = _get_match_session(session, session_id)
    matches = fetch_session_matches(session, session_id)
    roster = _session_roster(match_session)
    results = {match.card_id: match.winner for match in matches if match.winner}
    stats = compute_stats(roster, [match.to_card() for match in matches], results)
    return [{**stat, "short_name": shorten_name(stat["name"])} for stat in stats]
