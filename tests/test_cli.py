import io
from datetime import datetime, timezone

from killstalker.cli import Monitor, main
from killstalker.feed import list_feed_files
from killstalker.processor import format_timestamp
from killstalker.stats import Stats, StatsStore

NAME_LINE = (
    '<2024-05-01T10:00:00.000Z> [Notice] <AccountLoginCharacterStatus_Character> '
    'Character: createdAt 1 - nickname="Alice" playerGUID=1'
)
KILL_LINE = (
    "<2024-05-01T10:01:00.000Z> [Notice] <Actor Death> CActor::Kill: 'Bob' [200] "
    "in zone 'x' killed by 'Alice' [100] using 'rifle_01' [Class unknown] "
    "with damage type 'Bullet'"
)


def _monitor(tmp_path, show_raw=False):
    out = io.StringIO()
    return Monitor(tmp_path, show_raw=show_raw, out=out), out


def test_append_output_adds_untimestamped_entry(tmp_path):
    monitor, out = _monitor(tmp_path)
    monitor.append_output("Monitoring: game.log")
    assert out.getvalue() == "Monitoring: game.log\n"
    assert len(monitor.feed.entries) == 1
    assert monitor.feed.entries[0].raw_line == ""


def test_handle_output_prefixes_local_timestamp(tmp_path):
    monitor, out = _monitor(tmp_path)
    moment = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    monitor.handle_output("hello", moment)
    assert out.getvalue() == f"{format_timestamp(moment)} hello\n"


def test_detect_player_name(tmp_path):
    monitor, out = _monitor(tmp_path)
    monitor.detect_player_name(NAME_LINE)
    assert monitor.processor.player_name == "Alice"
    assert "Detected player name: Alice" in out.getvalue()


def test_kill_updates_feed_stats_and_leaderboards(tmp_path):
    monitor, out = _monitor(tmp_path)
    monitor.detect_player_name(NAME_LINE)
    monitor.process_log_line(KILL_LINE)
    stamp = format_timestamp(datetime(2024, 5, 1, 10, 1, tzinfo=timezone.utc))
    assert out.getvalue().splitlines()[-1] == f"{stamp} You killed: Bob using rifle"
    assert monitor.feed.entries[-1].raw_line == KILL_LINE
    assert StatsStore(tmp_path).load("Alice").kills == {"Bob": 1}
    assert monitor.sessions.get("Alice").kills == {"Bob": 1}
    assert monitor.leaderboards["all_time_kills"] == [("Bob", 1)]
    assert monitor.leaderboards["session_kills"] == [("Bob", 1)]
    assert monitor.leaderboards["all_time_deaths"] == []


def test_raw_lines_shown_when_enabled(tmp_path):
    monitor, out = _monitor(tmp_path, show_raw=True)
    monitor.detect_player_name(NAME_LINE)
    monitor.process_log_line(KILL_LINE)
    assert "↳ Raw: " + KILL_LINE in out.getvalue()


def test_lines_before_player_known_are_ignored(tmp_path):
    monitor, out = _monitor(tmp_path)
    monitor.process_log_line(KILL_LINE)
    assert out.getvalue() == ""
    assert monitor.feed.entries == []


def test_main_watch_once_saves_feed(tmp_path, capsys):
    log = tmp_path / "game.log"
    log.write_text(NAME_LINE + "\n" + KILL_LINE + "\n", encoding="utf-8")
    data = tmp_path / "data"
    assert main(["--data-dir", str(data), "watch", str(log), "--once"]) == 0
    output = capsys.readouterr().out
    assert output.startswith(f"Monitoring: {log}\n")
    assert "You killed: Bob using rifle" in output
    assert "#1 • Bob (1 kills)" in output
    feeds = list_feed_files(data)
    assert len(feeds) == 1
    assert feeds[0].startswith("Alice_")


def test_main_watch_reuses_saved_path(tmp_path, capsys):
    log = tmp_path / "game.log"
    log.write_text(NAME_LINE + "\n", encoding="utf-8")
    data = tmp_path / "data"
    assert main(["--data-dir", str(data), "watch", str(log), "--once"]) == 0
    capsys.readouterr()
    assert main(["--data-dir", str(data), "watch", "--once"]) == 0
    assert f"Monitoring: {log}" in capsys.readouterr().out


def test_main_watch_missing_file(tmp_path, capsys):
    missing = tmp_path / "nope.log"
    assert main(["--data-dir", str(tmp_path), "watch", str(missing)]) == 1
    assert f"log file not found: {missing}" in capsys.readouterr().err


def test_main_watch_without_any_path(tmp_path):
    assert main(["--data-dir", str(tmp_path / "empty"), "watch", "--once"]) == 2


def test_main_reset_and_stats(tmp_path, capsys):
    store = StatsStore(tmp_path)
    store.save("Alice", Stats(kills={"Bob": 3}, deaths={"Carl": 2}))
    assert main(["--data-dir", str(tmp_path), "stats", "Alice"]) == 0
    output = capsys.readouterr().out
    assert "#1 • Bob (3 kills)" in output
    assert "#1 • Carl (2 deaths)" in output
    assert main(["--data-dir", str(tmp_path), "reset", "Alice"]) == 0
    assert store.load("Alice") == Stats()


def test_main_clear_removes_files(tmp_path):
    (tmp_path / "Alice_stats.json").write_text("{}", encoding="utf-8")
    (tmp_path / "Alice_2024-05-01.json").write_text("[]", encoding="utf-8")
    assert main(["--data-dir", str(tmp_path), "clear"]) == 0
    assert list(tmp_path.iterdir()) == []


def test_main_export_missing_feed(tmp_path, capsys):
    code = main(["--data-dir", str(tmp_path), "export", "nothing.json", str(tmp_path / "o.html")])
    assert code == 1
    assert "failed to read feed" in capsys.readouterr().err