"""Log event records and aggregation of related events into summaries."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta

_NUMERIC_SUFFIX = re.compile(r"_[0-9]+\Z")


def clean_name(name: str) -> str:
    """Drop a trailing numeric suffix and turn underscores into spaces."""
    return _NUMERIC_SUFFIX.sub("", name).replace("_", " ")


@dataclass
class KillEvent:
    """A kill recorded in the log."""

    killer: str
    victim: str
    weapon: str
    timestamp: datetime


@dataclass
class DeathEvent:
    """A death recorded in the log."""

    player: str
    timestamp: datetime


@dataclass
class CorpseEvent:
    """A player turning into a corpse."""

    player: str
    timestamp: datetime


class EventType(enum.Enum):
    """Kinds of events that can be aggregated."""

    VEHICLE_DESTRUCTION = 0
    PLAYER_DEATH = 1
    VEHICLE_SPAWN = 2
    ACTOR_STATE = 3


@dataclass
class PendingEvent:
    """An event waiting to be combined with related events."""

    type: EventType
    timestamp: datetime
    player_name: str
    vehicle_name: str = ""
    cause: str = ""
    weapon: str = ""
    raw_line: str = ""
    details: dict[str, str] = field(default_factory=dict)


@dataclass
class EventAggregator:
    """Collects events and turns those close in time into mission summaries."""

    pending_events: list[PendingEvent] = field(default_factory=list)
    time_window: timedelta = timedelta(seconds=5)

    def add_event(self, event: PendingEvent) -> None:
        """Queue an event."""
        self.pending_events.append(event)

    def flush_old_events(self, current_time: datetime) -> list[str]:
        """Remove events older than the window and return their messages."""
        old: list[PendingEvent] = []
        remaining: list[PendingEvent] = []
        for event in self.pending_events:
            if current_time - event.timestamp > self.time_window:
                old.append(event)
            else:
                remaining.append(event)

        by_player: dict[str, list[PendingEvent]] = {}
        for event in old:
            by_player.setdefault(event.player_name, []).append(event)

        messages: list[str] = []
        for events in by_player.values():
            summary = self.create_mission_summary(events)
            if summary:
                messages.append(summary)
            else:
                messages.extend(self.individual_message(e) for e in events)

        self.pending_events = remaining
        return messages

    def process_events_for_player(self, player_name: str, current_time: datetime) -> str:
        """Take a player's recent events out of the queue and summarise them."""
        related: list[PendingEvent] = []
        remaining: list[PendingEvent] = []
        for event in self.pending_events:
            if (
                event.player_name == player_name
                and current_time - event.timestamp <= self.time_window
            ):
                related.append(event)
            else:
                remaining.append(event)
        self.pending_events = remaining
        return self.create_mission_summary(related) if related else ""

    def create_mission_summary(self, events: list[PendingEvent]) -> str:
        """Describe a crash if the events show one; otherwise return ``""``."""
        vehicle_destroyed = player_died = crash = False
        player_name = vehicle_name = ""

        for event in sorted(events, key=lambda e: e.timestamp):
            if event.type is EventType.VEHICLE_DESTRUCTION:
                vehicle_destroyed = True
                vehicle_name = event.vehicle_name
                if "collision" in (event.cause.lower(), event.weapon.lower()):
                    crash = True
            elif event.type is EventType.PLAYER_DEATH:
                player_died = True
                player_name = event.player_name
                if "crash" in (event.cause.lower(), event.weapon.lower()):
                    crash = True

        if vehicle_destroyed and player_died and crash and player_name:
            if vehicle_name:
                return (
                    f"Mission Event: {player_name} crashed their "
                    f"{clean_name(vehicle_name)} and died"
                )
            return f"Mission Event: {player_name} died in a crash"
        return ""

    def individual_message(self, event: PendingEvent) -> str:
        """Describe a single event on its own."""
        if event.type is EventType.VEHICLE_DESTRUCTION:
            if event.vehicle_name:
                return (
                    f"Vehicle {clean_name(event.vehicle_name)} "
                    f"was destroyed by {event.cause}"
                )
            return f"Vehicle was destroyed by {event.cause}"
        if event.type is EventType.PLAYER_DEATH:
            if event.weapon and event.weapon != "unknown":
                return f"You were killed by: {event.cause} using {event.weapon}"
            return f"You died by {event.cause}"
        if event.type is EventType.ACTOR_STATE:
            if event.cause == "corpse":
                return "You turned to a corpse"
            return f"You {event.cause}"
        return event.raw_line