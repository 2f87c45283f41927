"""Parsing of game log lines into kills, deaths, incaps and aggregated events."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from killstalker.events import EventAggregator, EventType, PendingEvent, clean_name
from killstalker.stats import SessionStats, Stats, StatsStore

OutputCallback = Callable[[str, "datetime | None"], None]

_CORPSE_RE = re.compile(r"\bCorpse\b", re.ASCII)
_VEHICLE_RE = re.compile(
    r"CVehicle::OnAdvanceDestroyLevel: Vehicle '([^']+)' .*advanced from destroy level "
    r"([0-9]+) to ([0-9]+) caused by '([^']+)' .*with '([^']+)'"
)
_NICKNAME_RE = re.compile(r'nickname="([^"]+)"')
_PLAYER_BRACKET_RE = re.compile(r"Player\[([^\]]+)\]")
_INCAP_RE = re.compile(r"nickname: ([A-Za-z0-9_]+)")
_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)
_LEGACY_NAME_CHARS = "-:[]{}\\\",'"
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _parse_rfc3339(text: str) -> datetime | None:
    match = _RFC3339_RE.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            return None
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tz
        )
    except ValueError:
        return None


def extract_log_timestamp(line: str) -> datetime | None:
    """Return the UTC timestamp of a log line, or None if it carries none."""
    start = line.find("<")
    if start != -1:
        end = line.find(">", start)
        if end != -1:
            moment = _parse_rfc3339(line[start + 1 : end])
            if moment is not None:
                return moment

    for token in line.split():
        if len(token) >= 20 and (token.endswith("Z") or token.endswith("+00:00")):
            moment = _parse_rfc3339(token)
            if moment is not None:
                return moment
        if "-" not in token and ":" not in token:
            break
    return None


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a moment (now if None) in local time as ``YYYY-MM-DD HH:MM:SS``."""
    if moment is None:
        moment = datetime.now()
    return moment.astimezone().strftime(_TIME_FORMAT)


class Processor:
    """Keeps the state needed to interpret a player's game log."""

    def __init__(
        self,
        on_output: OutputCallback | None = None,
        store: StatsStore | None = None,
        sessions: SessionStats | None = None,
    ) -> None:
        self.player_name = ""
        self.stats = Stats()
        self.session_stats = Stats()
        self.on_output = on_output
        self.store = store
        self.sessions = sessions
        self.last_raw_log_line = ""
        self.event_aggregator = EventAggregator()
        self.output: list[str] = []

    def append_output(self, line: str, log_time: datetime | None = None) -> None:
        """Emit a feed line, through the callback if one is set."""
        if self.on_output is not None:
            self.on_output(line, log_time)
        else:
            self.output.append(f"{format_timestamp(log_time)} {line}")

    def _set_player(self, name: str, log_time: datetime | None) -> None:
        self.player_name = name
        self.append_output("Detected player name: " + name, log_time)
        self.stats = self.store.load(name) if self.store is not None else Stats()

    def detect_player_name(self, line: str) -> None:
        """Learn the player's name from a line, once."""
        if self.player_name:
            return
        log_time = extract_log_timestamp(line)

        if "nickname=" in line:
            match = _NICKNAME_RE.search(line)
            if match:
                self._set_player(match[1], log_time)
                return

        if "Player[" in line:
            match = _PLAYER_BRACKET_RE.search(line)
            if match:
                self._set_player(match[1], log_time)
                return

        if "Character:" in line and "name" in line:
            tokens = line.split()
            for token, following in zip(tokens, tokens[1:]):
                if token == "name":
                    self._set_player(following.strip(_LEGACY_NAME_CHARS), log_time)
                    return

    def _record(self, category: str, name: str) -> None:
        for stats in (self.stats, self.session_stats):
            counts = getattr(stats, category)
            counts[name] = counts.get(name, 0) + 1
        if self.store is not None:
            self.store.save(self.player_name, self.stats)
        if self.sessions is not None:
            self.sessions.update(self.player_name, self.session_stats)

    def process_log_line(self, line: str) -> None:
        """Update stats and pending events from one log line."""
        self.last_raw_log_line = line
        log_time = extract_log_timestamp(line) or datetime.now(timezone.utc)

        if not self.player_name:
            return
        player = self.player_name
        quoted = re.escape(player)

        for message in self.event_aggregator.flush_old_events(log_time):
            self.append_output(message, log_time)

        if "CVehicle::OnAdvanceDestroyLevel" in line:
            match = _VEHICLE_RE.search(line)
            if match:
                self.event_aggregator.add_event(
                    PendingEvent(
                        type=EventType.VEHICLE_DESTRUCTION,
                        timestamp=log_time,
                        player_name=player,
                        vehicle_name=match[1],
                        cause=match[4],
                        weapon=match[5],
                        raw_line=line,
                        details={"destroyLevel": match[3]},
                    )
                )

        if "CActor::Kill:" in line:
            suicide = re.compile(rf"CActor::Kill: '{quoted}'.*killed by '{quoted}'")
            death = re.compile(
                rf"CActor::Kill: '{quoted}'.*killed by '([^']+)'"
                r"(?:.*using '([^']+)')?(?:.*with damage type '([^']+)')?"
            )
            if suicide.search(line):
                self._record("deaths", "Suicide")
                self.event_aggregator.add_event(
                    PendingEvent(
                        type=EventType.PLAYER_DEATH,
                        timestamp=log_time,
                        player_name=player,
                        cause="suicide",
                        weapon="suicide",
                        raw_line=line,
                    )
                )
            elif match := death.search(line):
                killer = match[1]
                self._record("deaths", killer)
                self.event_aggregator.add_event(
                    PendingEvent(
                        type=EventType.PLAYER_DEATH,
                        timestamp=log_time,
                        player_name=player,
                        cause=killer,
                        weapon=match[2] or "",
                        raw_line=line,
                        details={"damageType": match[3] or ""},
                    )
                )
            else:
                with_method = re.compile(
                    rf"CActor::Kill: '([A-Za-z0-9_]+)'.*killed by '{quoted}'.*using '([^']+)'"
                )
                if match := with_method.search(line):
                    victim = match[1]
                    self._record("kills", victim)
                    self.append_output(
                        f"You killed: {victim} using {clean_name(match[2])}", log_time
                    )
                    return
                plain = re.compile(rf"CActor::Kill: '([A-Za-z0-9_]+)'.*killed by '{quoted}'")
                if match := plain.search(line):
                    victim = match[1]
                    self._record("kills", victim)
                    self.append_output("You killed: " + victim, log_time)
                    return

        if _CORPSE_RE.search(line) or "Entering control state" in line:
            start = line.find("Player '")
            if start != -1:
                end = line.find("'", start + 8)
                if end != -1:
                    extracted = line[start + 8 : end]
                    if extracted and extracted == player:
                        self.event_aggregator.add_event(
                            PendingEvent(
                                type=EventType.ACTOR_STATE,
                                timestamp=log_time,
                                player_name=player,
                                cause="corpse",
                                raw_line=line,
                            )
                        )

        if "Logged an incap" in line:
            match = _INCAP_RE.search(line)
            if match and match[1] != player:
                target = match[1]
                self._record("incaps", target)
                self.append_output("You incapacitated: " + target, log_time)
                return