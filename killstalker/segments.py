"""Feed segments: plain text and citizen links that make up feed lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from killstalker.names import (
    citizen_url,
    format_npc_name,
    format_pet_name,
    is_npc_name,
    is_pet_name,
    should_hyperlink_name,
)

TEXT = "text"
HYPERLINK = "hyperlink"
NEWLINE = "\n"

_TRIM_CHARS = ",.?!;:'\"[]()"
_PASSTHROUGH_PREFIXES = (
    "You were killed by: ",
    "You died by ",
    "You turned to a corpse",
    "Mission Event: ",
)


@dataclass(frozen=True)
class FeedSegment:
    """One piece of a feed line: ``text`` or a ``hyperlink`` with a URL."""

    type: str
    text: str
    url: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the JSON form; the URL is left out when empty."""
        data = {"type": self.type, "text": self.text}
        if self.url:
            data["url"] = self.url
        return data

    @classmethod
    def from_dict(cls, data: Any) -> FeedSegment:
        """Build a segment from its JSON form; raise ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("segment must be an object")
        values = {key: data.get(key, "") for key in ("type", "text", "url")}
        for key, value in values.items():
            if value is None:
                values[key] = ""
            elif not isinstance(value, str):
                raise ValueError(f"segment field {key!r} must be a string")
        return cls(values["type"], values["text"], values["url"])


def _text(text: str) -> FeedSegment:
    return FeedSegment(TEXT, text)


def _link(text: str, name: str | None = None) -> FeedSegment:
    return FeedSegment(HYPERLINK, text, citizen_url(text if name is None else name))


def _name_segment(name: str) -> FeedSegment:
    if name.lower() == "suicide":
        return _text(name)
    if is_npc_name(name):
        return _text(format_npc_name(name))
    if is_pet_name(name):
        return _text(format_pet_name(name))
    if should_hyperlink_name(name):
        return _link(name)
    return _text(name)


def _display_word(word: str, clean: str) -> str:
    if is_npc_name(clean):
        return word.replace(clean, format_npc_name(clean), 1)
    if is_pet_name(clean):
        return word.replace(clean, format_pet_name(clean), 1)
    return word


def _index_after(words: list[str], predicate) -> int:
    """Index of the word following the last word matching ``predicate``, or -1."""
    found = -1
    for i, word in enumerate(words):
        if predicate(i, word):
            found = i + 1
    return found


def _same_player(a: str, b: str) -> bool:
    return a.replace(" ", "_").casefold() == b.replace(" ", "_").casefold()


def create_enhanced_segments(line: str, timestamp: str, player_name: str) -> list[FeedSegment]:
    """Turn one processed feed line into segments, linking player names."""
    segments = [_text(timestamp + " ")]

    if line.startswith(_PASSTHROUGH_PREFIXES) or (
        line.startswith("Vehicle ") and " was destroyed by " in line
    ):
        return [*segments, _text(line), _text(NEWLINE)]

    if "has turned to a corpse" in line:
        name = line.split(" has turned to a corpse", 1)[0].strip()
        return [
            *segments,
            _name_segment(name),
            _text(" has turned to a corpse"),
            _text(NEWLINE),
        ]

    if any(marker in line for marker in ("You killed:", "You were killed by:", "You incapacitated:")):
        return create_kill_message_segments(line, segments, player_name)

    if "Vehicle" in line and ("destroyed" in line or "disabled" in line):
        return create_vehicle_message_segments(line, segments)

    words = line.split()
    by_index = _index_after(words, lambda i, w: w.lower() == "by" and i < len(words) - 1)
    for i, word in enumerate(words):
        clean = word.strip(_TRIM_CHARS)
        link = False
        if len(clean) >= 3 and (i == by_index or _same_player(clean, player_name)):
            link = should_hyperlink_name(clean)
        if link:
            segments.append(_link(word, clean))
        else:
            segments.append(_text(_display_word(word, clean)))
        if i < len(words) - 1:
            segments.append(_text(" "))

    segments.append(_text(NEWLINE))
    return segments


def _split_using(remaining: str) -> tuple[str, str | None]:
    index = remaining.find(" using ")
    if index > 0:
        return remaining[:index].strip(), remaining[index + 7 :].strip()
    return remaining.strip(), None


def create_kill_message_segments(
    line: str, base_segments: list[FeedSegment], player_name: str
) -> list[FeedSegment]:
    """Segments for kill, death and incapacitation lines, after ``base_segments``."""
    segments = list(base_segments)
    for prefix in ("You killed:", "You were killed by:"):
        if line.startswith(prefix):
            name, weapon = _split_using(line.split(prefix, 1)[1].strip())
            segments.append(_text(prefix + " "))
            segments.append(_name_segment(name))
            if weapon is not None:
                segments.append(_text(" using " + weapon))
            break
    else:
        if line.startswith("You incapacitated:"):
            victim = line.split("You incapacitated:", 1)[1].strip()
            segments.append(_text("You incapacitated: "))
            segments.append(_name_segment(victim))

    segments.append(_text(NEWLINE))
    return segments


def create_vehicle_message_segments(
    line: str, base_segments: list[FeedSegment]
) -> list[FeedSegment]:
    """Segments for vehicle destruction lines, after ``base_segments``."""
    segments = list(base_segments)
    by_index = line.find(" by ")
    using_index = line.find(" using ")

    if by_index > 0:
        after_by = line[by_index + 4 :]
        segments.append(_text(line[:by_index] + " by "))
        if using_index > by_index:
            split_at = using_index - by_index - 4
            killer = after_by[: max(split_at, 0)].strip()
            weapon = after_by[split_at + 7 :].strip()
            segments.append(_name_segment(killer))
            segments.append(_text(" using " + weapon))
        else:
            segments.append(_name_segment(after_by.strip()))
    else:
        segments.append(_text(line))

    segments.append(_text(NEWLINE))
    return segments


def line_segments(line: str) -> list[FeedSegment]:
    """Segments for a live feed line, linking names in kill, death and corpse context."""
    words = line.split()
    last = len(words) - 1
    by_index = _index_after(words, lambda i, w: w.lower() == "by" and i < last)
    killed_index = _index_after(words, lambda i, w: "killed:" in w)
    incap_index = _index_after(words, lambda i, w: "incapacitated:" in w)
    corpse_line = "corpse" in line and not line.startswith("You")
    died_line = "died" in line

    segments: list[FeedSegment] = []
    for i, word in enumerate(words):
        clean = word.strip(_TRIM_CHARS)
        link = False
        if len(clean) >= 3 and (
            i in (by_index, killed_index, incap_index)
            or corpse_line
            or (died_line and i > 0 and words[i - 1].lower() == "by")
        ):
            link = should_hyperlink_name(clean)
        display = _display_word(word, clean)
        segments.append(FeedSegment(HYPERLINK, display, citizen_url(clean)) if link else _text(display))
        if i < last:
            segments.append(_text(" "))

    segments.append(_text(NEWLINE))
    return segments


def group_lines(segments: list[FeedSegment]) -> list[list[FeedSegment]]:
    """Split a flat segment list into newline-terminated lines; a trailing partial line is dropped."""
    lines: list[list[FeedSegment]] = []
    current: list[FeedSegment] = []
    for segment in segments:
        if segment.type == HYPERLINK:
            current.append(FeedSegment(HYPERLINK, segment.text, segment.url))
        elif segment.type != TEXT:
            continue
        elif segment.text == NEWLINE:
            current.append(_text(NEWLINE))
            lines.append(current)
            current = []
        elif NEWLINE in segment.text:
            parts = segment.text.split(NEWLINE)
            for i, part in enumerate(parts):
                if part:
                    current.append(_text(part))
                if i < len(parts) - 1:
                    current.append(_text(NEWLINE))
                    lines.append(current)
                    current = []
        else:
            current.append(_text(segment.text))
    return lines


def lines_to_segments(lines: list[list[FeedSegment]]) -> list[FeedSegment]:
    """Flatten saved lines for display, merging adjacent text and ending each line with a newline."""
    result: list[FeedSegment] = []
    for line in lines:
        buffer: list[str] = []

        def flush() -> None:
            if buffer:
                result.append(_text("".join(buffer)))
                buffer.clear()

        for segment in line:
            if segment.type == TEXT:
                if segment.text == NEWLINE:
                    flush()
                else:
                    buffer.append(segment.text)
            elif segment.type == HYPERLINK:
                flush()
                result.append(FeedSegment(HYPERLINK, segment.text, segment.url))
        flush()
        result.append(_text(NEWLINE))
    return result


def html_escape(text: str) -> str:
    """Escape ``&``, ``<`` and ``>`` for HTML."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")