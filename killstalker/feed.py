"""The live feed, saved feed files and the top-N lists shown as statistics."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from killstalker.segments import FeedSegment, group_lines, line_segments, lines_to_segments

MAX_DISPLAY_LINES = 1000
RAW_PREFIX = "↳ Raw: "
_RAW_DISPLAY_PREFIX = "    " + RAW_PREFIX
_DATE_FORMAT = "%Y-%m-%d"


def _text(text: str) -> FeedSegment:
    return FeedSegment("text", text)


@dataclass
class FeedEntry:
    """One feed line as segments, with the raw log line that produced it."""

    segments: list[FeedSegment]
    raw_line: str = ""


@dataclass
class Feed:
    """The running feed: every entry plus the segments currently shown."""

    show_raw: bool = False
    max_display_lines: int = MAX_DISPLAY_LINES
    entries: list[FeedEntry] = field(default_factory=list)
    segments: list[FeedSegment] = field(default_factory=list)

    def append(self, line: str, raw_line: str = "") -> list[FeedSegment]:
        """Add a feed line and return the segments made for it."""
        segments = line_segments(line)
        self.entries.append(FeedEntry(segments, raw_line))
        self.segments.extend(segments)
        if self.show_raw and raw_line:
            self.segments.append(_text(RAW_PREFIX + raw_line + "\n"))
        return segments

    def display_segments(self, show_raw: bool) -> list[FeedSegment]:
        """Segments for the most recent entries, with raw lines if asked for."""
        recent = self.entries[-self.max_display_lines :] if self.max_display_lines > 0 else []
        result: list[FeedSegment] = []
        for entry in recent:
            result.extend(entry.segments)
            if show_raw and entry.raw_line:
                result.extend(
                    (_text(_RAW_DISPLAY_PREFIX), _text(entry.raw_line), _text("\n"))
                )
        return result

    def render(self, show_raw: bool) -> list[FeedSegment]:
        """Switch raw display on or off and rebuild the shown segments."""
        self.show_raw = show_raw
        self.segments = self.display_segments(show_raw)
        return self.segments


def top_entries(counts: dict[str, int], limit: int = 10) -> list[tuple[str, int]]:
    """The ``limit`` names with the highest counts, highest first."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[: max(limit, 0)]


def unique_path(path: str | os.PathLike[str]) -> Path:
    """Return ``path``, or ``<stem>_N<suffix>`` with the smallest N >= 2 that is free."""
    path = Path(path)
    candidate = path
    index = 1
    while candidate.exists():
        index += 1
        candidate = path.with_name(f"{path.stem}_{index}{path.suffix}")
    return candidate


def feed_filename(
    directory: str | os.PathLike[str], player_name: str, today: date | None = None
) -> Path:
    """A free ``<player>_<date>.txt`` path in ``directory``."""
    name = (player_name or "Unknown").replace(" ", "_")
    day = (today or date.today()).strftime(_DATE_FORMAT)
    return unique_path(Path(directory) / f"{name}_{day}.txt")


def save_feed(
    directory: str | os.PathLike[str],
    player_name: str,
    segments: list[FeedSegment],
    today: date | None = None,
) -> Path:
    """Save the feed's complete lines as JSON in a new file and return its path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = unique_path(feed_filename(directory, player_name, today).with_suffix(".json"))
    lines = [[segment.to_dict() for segment in line] for line in group_lines(segments)]
    with target.open("w", encoding="utf-8") as handle:
        json.dump(lines, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
    return target


def list_feed_files(directory: str | os.PathLike[str]) -> list[str]:
    """Names of saved feeds in ``directory``, newest first."""
    directory = Path(directory)
    try:
        candidates = sorted(
            entry
            for entry in directory.iterdir()
            if entry.is_file()
            and entry.name.endswith(".json")
            and not entry.name.endswith("_stats.json")
        )
    except OSError:
        return []
    candidates.sort(key=lambda entry: entry.stat().st_mtime, reverse=True)
    return [entry.name for entry in candidates]


def load_feed(path: str | os.PathLike[str]) -> list[FeedSegment]:
    """Read a saved feed as display segments; empty if unreadable or malformed."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if data is None:
            return []
        if not isinstance(data, list):
            return []
        lines = [
            [FeedSegment.from_dict(item) for item in (line or [])]
            for line in data
            if line is None or isinstance(line, list)
        ]
    except (OSError, ValueError):
        return []
    return lines_to_segments(lines)


def filter_names(names: list[str], query: str) -> list[str]:
    """Names containing ``query``, ignoring case."""
    needle = query.lower()
    return [name for name in names if needle in name.lower()]


def clear_feed_dir(directory: str | os.PathLike[str]) -> list[str]:
    """Delete saved feeds, logs and stats files; return the removed names."""
    directory = Path(directory)
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return []
    removed: list[str] = []
    for entry in entries:
        if entry.is_file() and entry.name.endswith((".json", ".txt")):
            try:
                entry.unlink()
            except OSError:
                continue
            removed.append(entry.name)
    return removed