"""Command line front end: follow a game log, keep the feed and show statistics."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from killstalker.feed import (
    RAW_PREFIX,
    Feed,
    clear_feed_dir,
    list_feed_files,
    save_feed,
    top_entries,
)
from killstalker.history import convert_log_to_history, export_feed_to_html
from killstalker.processor import Processor, format_timestamp
from killstalker.stats import SessionStats, StatsStore, default_stats_dir
from killstalker.watcher import watch_log_file

SETTINGS_FILE = "monitor.conf"
LEADERBOARD_SIZE = 10
_BOARDS = ("all_time_kills", "all_time_deaths", "session_kills", "session_deaths")


class Monitor:
    """Routes processed log events into the feed and keeps the leaderboards current."""

    def __init__(
        self,
        data_dir: str | Path | None = None,
        show_raw: bool = False,
        out: TextIO | None = None,
    ) -> None:
        self.directory = Path(data_dir) if data_dir is not None else default_stats_dir()
        self.store = StatsStore(self.directory)
        self.sessions = SessionStats()
        self.processor = Processor(
            on_output=self.handle_output, store=self.store, sessions=self.sessions
        )
        self.feed = Feed(show_raw=show_raw)
        self.out = out
        self.leaderboards: dict[str, list[tuple[str, int]]] = {name: [] for name in _BOARDS}

    def handle_output(self, line: str, log_time: datetime | None) -> None:
        """Receive a processor message, stamping it with the local log time if known."""
        if log_time is not None:
            line = f"{format_timestamp(log_time)} {line}"
        self._emit(line, self.processor.last_raw_log_line)

    def append_output(self, line: str) -> None:
        """Add a message that did not come from a log line."""
        self._emit(line, "")

    def detect_player_name(self, line: str) -> None:
        """Pass a log line to the processor for player name detection."""
        self.processor.detect_player_name(line)

    def process_log_line(self, line: str) -> None:
        """Pass a log line to the processor for event processing."""
        self.processor.process_log_line(line)

    def _emit(self, line: str, raw_line: str) -> None:
        self.feed.append(line, raw_line)
        if self.out is not None:
            self.out.write(line + "\n")
            if self.feed.show_raw and raw_line:
                self.out.write(RAW_PREFIX + raw_line + "\n")
            self.out.flush()
        if self.processor.player_name:
            self._refresh_leaderboards(self.processor.player_name)

    def _refresh_leaderboards(self, player: str) -> None:
        all_time = self.store.load(player)
        session = self.sessions.get(player)
        self.leaderboards = {
            "all_time_kills": top_entries(all_time.kills, LEADERBOARD_SIZE),
            "all_time_deaths": top_entries(all_time.deaths, LEADERBOARD_SIZE),
            "session_kills": top_entries(session.kills, LEADERBOARD_SIZE),
            "session_deaths": top_entries(session.deaths, LEADERBOARD_SIZE),
        }


def _load_saved_path(directory: Path) -> str:
    try:
        data = json.loads((directory / SETTINGS_FILE).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return ""
    value = data.get("logPath", "") if isinstance(data, dict) else ""
    return value if isinstance(value, str) else ""


def _save_path(directory: Path, path: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / SETTINGS_FILE).write_text(json.dumps({"logPath": path}), encoding="utf-8")


def _format_board(title: str, entries: list[tuple[str, int]], noun: str) -> list[str]:
    lines = [title]
    if not entries:
        lines.append("  (none)")
    lines.extend(
        f"  #{rank} • {name} ({count} {noun})"
        for rank, (name, count) in enumerate(entries, start=1)
    )
    return lines


def _print_boards(boards: dict[str, list[tuple[str, int]]], out: TextIO, session: bool) -> None:
    sections = [
        ("Top 10 Victims (You Killed)", "all_time_kills", "kills"),
        ("Top 10 Killers (Killed You)", "all_time_deaths", "deaths"),
    ]
    if session:
        sections += [
            ("Session Victims (You Killed)", "session_kills", "kills"),
            ("Session Killers (Killed You)", "session_deaths", "deaths"),
        ]
    for title, key, noun in sections:
        out.write("\n".join(_format_board(title, boards.get(key, []), noun)) + "\n")


def _watch(args: argparse.Namespace, directory: Path, out: TextIO) -> int:
    path = getattr(args, "log", None) or _load_saved_path(directory)
    if not path:
        print("no log file given and none saved", file=sys.stderr)
        return 2
    if not Path(path).exists():
        print(f"log file not found: {path}", file=sys.stderr)
        return 1
    _save_path(directory, path)

    monitor = Monitor(directory, show_raw=getattr(args, "raw", False), out=out)
    monitor.handle_output("Monitoring: " + path, None)
    try:
        if getattr(args, "once", False):
            text = Path(path).read_text(encoding="utf-8", errors="replace")
            for line in text.splitlines():
                monitor.detect_player_name(line)
                monitor.process_log_line(line)
        else:
            watch_log_file(path, monitor, getattr(args, "interval", 0.5))
    except KeyboardInterrupt:
        pass
    finally:
        saved = save_feed(directory, monitor.processor.player_name, monitor.feed.segments)
    out.write(f"Feed saved to {saved}\n")
    _print_boards(monitor.leaderboards, out, session=True)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="killstalker",
        description="Follow a game log and keep a kill feed and statistics.",
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="where feeds and stats are kept")
    sub = parser.add_subparsers(dest="command")

    watch = sub.add_parser("watch", help="follow a game log")
    watch.add_argument("log", nargs="?", help="path to game.log (the saved one if omitted)")
    watch.add_argument("--raw", action="store_true", help="show the raw log line under each event")
    watch.add_argument("--once", action="store_true", help="process the whole log once and exit")
    watch.add_argument("--interval", type=float, default=0.5, help="seconds between polls")

    convert = sub.add_parser("convert", help="convert a game log into saved history")
    convert.add_argument("log")

    export = sub.add_parser("export", help="export a saved feed as HTML")
    export.add_argument("feed")
    export.add_argument("output")

    sub.add_parser("list", help="list saved feeds, newest first")
    sub.add_parser("clear", help="delete all saved feeds and statistics")

    reset = sub.add_parser("reset", help="reset a player's all-time statistics")
    reset.add_argument("player")

    stats = sub.add_parser("stats", help="show a player's all-time statistics")
    stats.add_argument("player")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface and return the exit status."""
    args = _build_parser().parse_args(argv)
    directory = args.data_dir if args.data_dir is not None else default_stats_dir()
    out = sys.stdout
    command = args.command or "watch"

    if command == "watch":
        return _watch(args, directory, out)

    if command == "convert":
        try:
            target = convert_log_to_history(args.log, directory)
        except OSError as exc:
            print(f"failed to read log: {exc}", file=sys.stderr)
            return 1
        out.write(f"Log converted to history: {target}\n")
        return 0

    if command == "export":
        feed_path = Path(args.feed)
        if not feed_path.exists():
            feed_path = directory / args.feed
        try:
            export_feed_to_html(feed_path, args.output)
        except OSError as exc:
            print(f"failed to read feed: {exc}", file=sys.stderr)
            return 1
        out.write(f"Exported {feed_path.name} to {args.output}\n")
        return 0

    if command == "list":
        for name in list_feed_files(directory):
            out.write(name + "\n")
        return 0

    if command == "clear":
        clear_feed_dir(directory)
        out.write("All logs and statistics have been deleted.\n")
        return 0

    if command == "reset":
        StatsStore(directory).reset_all_time(args.player)
        out.write("All-time statistics have been reset.\n")
        return 0

    stored = StatsStore(directory).load(args.player)
    boards = {
        "all_time_kills": top_entries(stored.kills, LEADERBOARD_SIZE),
        "all_time_deaths": top_entries(stored.deaths, LEADERBOARD_SIZE),
    }
    _print_boards(boards, out, session=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())