"""Player statistics: the persisted all-time record and per-session counts."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_FIELDS = ("kills", "deaths", "incaps", "appearances")


def default_stats_dir() -> Path:
    """Directory where stats and feed files are kept."""
    return Path(os.environ.get("APPDATA", "")) / "citizenmon" / "feeds"


def _counts(value: Any) -> dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("stats counts must be an object")
    result: dict[str, int] = {}
    for key, count in value.items():
        if not isinstance(count, int) or isinstance(count, bool):
            raise ValueError(f"count for {key!r} is not an integer")
        result[str(key)] = count
    return result


@dataclass
class Stats:
    """Counts of interactions with other players, keyed by name."""

    kills: dict[str, int] = field(default_factory=dict)
    deaths: dict[str, int] = field(default_factory=dict)
    incaps: dict[str, int] = field(default_factory=dict)
    appearances: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Return the JSON form of these stats."""
        return {name: dict(sorted(getattr(self, name).items())) for name in _FIELDS}

    @classmethod
    def from_dict(cls, data: Any) -> Stats:
        """Build stats from their JSON form; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("stats must be an object")
        return cls(**{name: _counts(data.get(name)) for name in _FIELDS})


class StatsStore:
    """Reads and writes ``<player>_stats.json`` files in one directory."""

    def __init__(self, directory: str | os.PathLike[str] | None = None) -> None:
        self.directory = Path(directory) if directory is not None else default_stats_dir()

    def _path(self, player: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory / f"{player}_stats.json"

    def load(self, player: str) -> Stats:
        """Load a player's stats; empty stats if missing or unreadable."""
        if not player:
            return Stats()
        try:
            with self._path(player).open(encoding="utf-8") as handle:
                return Stats.from_dict(json.load(handle))
        except (OSError, ValueError):
            return Stats()

    def save(self, player: str, stats: Stats) -> None:
        """Write a player's stats; does nothing for an empty name."""
        if not player:
            return
        with self._path(player).open("w", encoding="utf-8") as handle:
            json.dump(stats.to_dict(), handle, ensure_ascii=False)
            handle.write("\n")

    def reset_all_time(self, player: str) -> None:
        """Overwrite a player's stored stats with empty ones."""
        if not player:
            return
        self.save(player, Stats())


class SessionStats:
    """In-memory stats for the current session, per player."""

    def __init__(self) -> None:
        self._by_player: dict[str, Stats] = {}

    def reset(self) -> None:
        """Forget every player's session stats."""
        self._by_player = {}

    def get(self, player: str) -> Stats:
        """Return a player's session stats, or empty stats."""
        if not player:
            return Stats()
        return self._by_player.get(player, Stats())

    def update(self, player: str, stats: Stats) -> None:
        """Record a player's session stats; ignored for an empty name."""
        if player:
            self._by_player[player] = stats