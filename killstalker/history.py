"""Conversion of raw game logs into saved feed history, and history exports."""

from __future__ import annotations

import json
import os
import re
from datetime import date, datetime
from pathlib import Path

from killstalker.processor import Processor, format_timestamp
from killstalker.segments import FeedSegment, create_enhanced_segments, html_escape
from killstalker.stats import default_stats_dir

UNKNOWN_PLAYER = "Unknown"
_DATE_FORMAT = "%Y-%m-%d"
_HISTORY_TIME_FORMAT = "%d.%m.%Y, %H:%M (%Z)"
_NICKNAME_RE = re.compile(r'nickname="([^"]+)"')
_PLAYER_BRACKET_RE = re.compile(r"Player\[([^\]]+)\]")
_FILENAME_SEPARATORS = re.compile(r"[ _\-()]+")
_GENERIC_FILENAME_WORDS = frozenset({"Game", "Log", "StarCitizen"})
_SKIPPED_OUTPUT = "PlayerName is empty, skipping stats update for line"
_HTML_HEAD = (
    "<html><head><meta charset='utf-8'><title>CitizenMon Feed Export</title>"
    "</head><body><pre>"
)
_HTML_TAIL = "</pre></body></html>"


def _name_from_lines(lines: list[str]) -> str | None:
    for line in lines:
        if "nickname=" in line:
            match = _NICKNAME_RE.search(line)
            if match:
                return match[1]
        if "Player[" in line:
            match = _PLAYER_BRACKET_RE.search(line)
            if match:
                return match[1]
        if "Player name:" in line:
            return line.split(":", 1)[1].strip()
    return None


def detect_player_name_in_log(lines: list[str], filename: str) -> str:
    """Find the player's name in log lines, falling back to the file name."""
    name = _name_from_lines(lines)
    if name is None:
        name = UNKNOWN_PLAYER
        base = os.path.basename(filename)
        cut = min((i for i in (base.find(" "), base.find("_")) if i != -1), default=-1)
        if cut > 0 and base[:cut] not in _GENERIC_FILENAME_WORDS:
            name = base[:cut]
    name = name.replace(" ", "_")
    return name or UNKNOWN_PLAYER


def date_from_filename(filename: str, today: date | None = None) -> str:
    """A ``YYYY-MM-DD`` token from the file name's fields, else ``today``."""
    base = os.path.basename(filename)
    for token in _FILENAME_SEPARATORS.split(base):
        if len(token) == 10 and token[4] == "-" and token[7] == "-":
            return token
    return (today or date.today()).strftime(_DATE_FORMAT)


def _history_path(directory: Path, stem: str) -> Path:
    candidate = directory / f"{stem}.json"
    index = 1
    while candidate.exists():
        candidate = directory / f"{stem}_{index}.json"
        index += 1
    return candidate


def convert_log_to_history(
    log_path: str | os.PathLike[str],
    feeds_dir: str | os.PathLike[str] | None = None,
    now: datetime | None = None,
) -> Path:
    """Parse a whole game log into a saved feed file and return its path."""
    now = now or datetime.now()
    log_path = Path(log_path)
    lines = log_path.read_text(encoding="utf-8", errors="replace").split("\n")

    player_name = detect_player_name_in_log(lines, log_path.name)
    log_date = date_from_filename(log_path.name, now.date())
    feed: list[list[FeedSegment]] = []

    def collect(line: str, log_time: datetime | None) -> None:
        if not line or line == _SKIPPED_OUTPUT:
            return
        if line.startswith("Player appeared:"):
            appeared = line.split(":", 1)[1].strip()
            if appeared.replace(" ", "_").casefold() == player_name.replace(" ", "_").casefold():
                return
        stamp = format_timestamp(log_time if log_time is not None else now)
        feed.append(create_enhanced_segments(line, stamp, player_name))

    processor = Processor(on_output=collect)
    processor.player_name = player_name
    for line in lines:
        processor.process_log_line(line)

    if not feed:
        feed.append(
            [
                FeedSegment(
                    "text",
                    f"{format_timestamp(now)} No kill/death messages found in this log "
                    f"for player {player_name}.\n",
                )
            ]
        )

    directory = Path(feeds_dir) if feeds_dir is not None else default_stats_dir()
    directory.mkdir(parents=True, exist_ok=True)
    target = _history_path(directory, f"{player_name}_{log_date}")
    with target.open("w", encoding="utf-8") as handle:
        json.dump(
            [[segment.to_dict() for segment in line] for line in feed],
            handle,
            indent=2,
            ensure_ascii=False,
        )
        handle.write("\n")
    return target


def export_feed_to_html(
    feed_path: str | os.PathLike[str], out_path: str | os.PathLike[str]
) -> str:
    """Write a saved feed's text, escaped, into an HTML page and return the page."""
    data = Path(feed_path).read_text(encoding="utf-8", errors="replace")
    page = _HTML_HEAD + html_escape(data) + _HTML_TAIL
    Path(out_path).write_text(page, encoding="utf-8")
    return page


def format_history_entry(data: str, log_time: datetime) -> str:
    """Prefix a history entry with its local time, as ``[DD.MM.YYYY, HH:MM (TZ)]``."""
    return f"[{log_time.astimezone().strftime(_HISTORY_TIME_FORMAT)}] {data}"