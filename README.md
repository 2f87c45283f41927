# killstalker

Follows a game's log file while you play and prints a running feed of what
happens to your character: whom you killed, who killed you, whom you
incapacitated, vehicle destructions, and crashes in which you died. Kill,
death and incapacitation counts go into a statistics file for each player.
When you stop watching, the feed is saved as a JSON history file. Saved
feeds can be listed and exported to HTML.

## Install

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Commands

Follow a log file:

```
killstalker watch path/to/game.log
```

The path is remembered (in `monitor.conf` in the data directory), so later a
plain `killstalker` or `killstalker watch` follows the same file again. With
no path given and none saved the command exits with status 2. If the file does
not exist, it exits with status 1.

While watching, the monitor first reads the existing log to find the player's
name. After that it polls the file (every 0.5 seconds, or `--interval`
seconds) for new lines and prints each feed event with a local timestamp. It
copes with the file being truncated or replaced. Stop it with Ctrl+C. The feed
is then saved and the top 10 tables are printed: victims and killers for all
time and for the session.

Options of `watch`:

- `--raw` prints the raw log line under each event.
- `--once` processes the whole log once instead of following it, then saves
  and exits.
- `--interval SECONDS` sets the time between polls.

Other commands:

```
killstalker convert path/to/game.log     # turn a finished log into a saved feed
killstalker list                         # saved feeds, newest first
killstalker export FEED OUTPUT.html      # export a saved feed as HTML
killstalker stats PLAYER                 # top 10 victims and killers of a player
killstalker reset PLAYER                 # reset a player's all-time statistics
killstalker clear                        # delete all saved feeds and statistics
```

`--data-dir DIR`, given before the command, chooses where feeds, statistics
and settings are kept.

`convert` takes the player name from the log: a `nickname="..."`,
`Player[...]` or `Player name:` line. If the log has none, it uses the start of
the file name, up to the first space or underscore. The date comes from a
`YYYY-MM-DD` part of the file name, or is today's date. Conversion does not
change the statistics files.

`export` accepts either a path or the name of a feed in the data directory.
It writes the feed's JSON text, HTML-escaped, inside a `<pre>` block.

## Where data is stored

By default everything is kept in `citizenmon/feeds` under the directory that
the `APPDATA` environment variable names. If `APPDATA` is not set, that path
is relative to the current directory. `killstalker.stats.default_stats_dir()`
returns this location.

- `<player>_stats.json` holds the all-time counts (`kills`, `deaths`,
  `incaps`, `appearances`).
- `<player>_<date>.json` holds a saved feed: a list of lines, each a list of
  `{"type": "text" | "hyperlink", "text": ..., "url": ...}` segments. If the
  name is taken, a number is added to it.

`clear` deletes every `.json` and `.txt` file in the data directory.

## Library use

- `killstalker.processor.Processor` reads log lines, finds the player's name
  and counts kills, deaths and incapacitations. It can save them through a
  `killstalker.stats.StatsStore` and a `killstalker.stats.SessionStats`.
- `killstalker.events.EventAggregator` holds deaths, vehicle destructions and
  corpse events for five seconds. It then reports them, merging a vehicle
  collision and the pilot's crash death into one "Mission Event" line.
- `killstalker.segments.create_enhanced_segments` and
  `killstalker.segments.line_segments` split a feed line into text and
  citizen-profile hyperlink segments. NPC and pet names are shortened.
- `killstalker.feed` keeps the live feed (`Feed`) and saves, lists, loads and
  clears feed files. `top_entries` builds the top-N tables.
- `killstalker.history.convert_log_to_history` and
  `killstalker.history.export_feed_to_html` back the `convert` and `export`
  commands.
- `killstalker.watcher.watch_log_file` and `killstalker.watcher.LogTailer`
  follow a growing log file.
- `killstalker.cli.Monitor` ties these together for the `watch` command.

## What it does not do

- There is no graphical window. The feed and the statistics tables are printed
  as plain text. Hyperlinks exist only in the saved JSON segments.
- Deaths, vehicle destructions and corpse events are reported only after a
  later log line more than five seconds newer has been read. Events still
  pending when watching stops, or at the end of a `--once` run, are not
  printed.
- There is no viewer for saved feeds beyond `list` and `export`.