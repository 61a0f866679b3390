"""Roster helpers: normalization, default players, and display names."""

from __future__ import annotations

import os
import re
import uuid
from typing import Iterable, List, Mapping

from .scheduler import Player

DEFAULT_PLAYERS = 8
DEFAULT_ROUNDS = 6
DEFAULT_COURTS = 2
MAX_PLAYERS = int(os.getenv("MATCHBUILDER_MAX_PLAYERS", "24"))
MAX_ROUNDS = int(os.getenv("MATCHBUILDER_MAX_ROUNDS", "20"))
MAX_COURTS = int(os.getenv("MATCHBUILDER_MAX_COURTS", "6"))
GENDERS = ("", "male", "female")

PLAYER_COLORS = [
    "#4CF3FF",
    "#F2A6FF",
    "#FFB86B",
    "#7EE787",
    "#FFD166",
    "#FF6B6B",
    "#5BC0EB",
    "#9D4EDD",
    "#F72585",
    "#FF9F1C",
    "#2EC4B6",
    "#E9C46A",
    "#06D6A0",
    "#EF476F",
    "#A0C4FF",
    "#BDB2FF",
    "#FFC6FF",
    "#CAFFBF",
    "#FDFFB6",
    "#83C5BE",
]

_WHITESPACE = re.compile(r"\s+")


class RosterError(ValueError):
    """Raised when a roster cannot be turned into unique players."""


def clean_name(value: str | None) -> str:
    return _WHITESPACE.sub(" ", value or "").strip()


def normalize_players(entries: Iterable[Mapping[str, object]]) -> List[Player]:
    """Return players with trimmed names and ids, ignoring blank rows.

    Missing ids are generated. Duplicate ids or names (case-insensitive)
    raise ``RosterError``.
    """
    players: List[Player] = []
    seen_ids: set[str] = set()
    seen_names: set[str] = set()
    for entry in entries:
        name = clean_name(str(entry.get("name") or ""))
        if not name:
            continue

        player_id = str(entry.get("id") or "").strip() or uuid.uuid4().hex
        if player_id in seen_ids:
            raise RosterError(f"Duplicate player id: {player_id}")
        if name.casefold() in seen_names:
            raise RosterError(f"Duplicate player name: {name}")

        gender = str(entry.get("gender") or "").lower()
        if gender not in GENDERS:
            raise RosterError(f"Unknown gender for {name}: {gender}")

        seen_ids.add(player_id)
        seen_names.add(name.casefold())
        color = entry.get("color")
        players.append(Player(id=player_id, name=name, color=str(color) if color else None, gender=gender))
    return players


def pick_next_color(players: Iterable[Mapping[str, object]], index: int) -> str:
    """Return the first palette colour nobody uses yet, cycling once all are taken."""
    used = {player.get("color") for player in players if player.get("color")}
    for color in PLAYER_COLORS:
        if color not in used:
            return color
    return PLAYER_COLORS[index % len(PLAYER_COLORS)]


def build_default_players(total: int = DEFAULT_PLAYERS) -> List[Player]:
    return [
        Player(
            id=uuid.uuid4().hex,
            name=f"Player {index + 1}",
            color=PLAYER_COLORS[index % len(PLAYER_COLORS)],
            gender="",
        )
        for index in range(max(0, total))
    ]


def _truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    if max_length <= 2:
        return value[: max(1, max_length)]
    return f"{value[: max_length - 2]}.."


def shorten_name(name: str, max_length: int = 12) -> str:
    """Shorten ``name`` for compact display, preferring "First L" over truncation."""
    trimmed = clean_name(name)
    if len(trimmed) <= max_length:
        return trimmed

    parts = trimmed.split(" ")
    if len(parts) < 2:
        return _truncate(trimmed, max_length)

    first_name = parts[0]
    last_initial = parts[-1][:1]
    first_pass = f"{first_name} {last_initial}"
    if len(first_pass) <= max_length:
        return first_pass

    available = max_length - 2
    if available < 3:
        return f"{first_name[:1]}{last_initial}"
    return f"{_truncate(first_name, available)} {last_initial}"


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


def normalize_court_numbers(values: Iterable[int] | None) -> List[int]:
    """Keep positive court numbers in order, dropping repeats."""
    numbers: List[int] = []
    for value in values or []:
        number = int(value)
        if number > 0 and number not in numbers:
            numbers.append(number)
    return numbers


def court_number(court_numbers: List[int], position: int) -> int:
    """Label for the court at ``position`` within a round, falling back to position + 1."""
    if position < len(court_numbers):
        return court_numbers[position]
    return position + 1
