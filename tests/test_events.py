from datetime import datetime, timedelta, timezone

from killstalker.events import (
    EventAggregator,
    EventType,
    PendingEvent,
    clean_name,
)

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _vehicle(ts, cause="collision", weapon="unknown", name="ANVL_Arrow_123"):
    return PendingEvent(
        type=EventType.VEHICLE_DESTRUCTION, timestamp=ts, player_name="Alice",
        vehicle_name=name, cause=cause, weapon=weapon,
    )


def _death(ts, cause="crash", weapon="crash"):
    return PendingEvent(
        type=EventType.PLAYER_DEATH, timestamp=ts, player_name="Alice",
        cause=cause, weapon=weapon,
    )


def test_clean_name():
    assert clean_name("ANVL_Arrow_123") == "ANVL Arrow"


def test_clean_name_without_suffix_only_replaces_underscores():
    result = clean_name("Some_Ship")
    assert "_" not in result
    assert result.replace(" ", "_") == "Some_Ship"


def test_clean_name_suffix_only_at_end():
    assert clean_name("Ship_12_Mk").replace(" ", "_") == "Ship_12_Mk"


def test_crash_summary_names_player_and_vehicle():
    agg = EventAggregator()
    summary = agg.create_mission_summary([_death(T0), _vehicle(T0)])
    assert summary.startswith("Mission Event: Alice crashed their ")
    assert clean_name("ANVL_Arrow_123") in summary
    assert summary.endswith(" and died")


def test_crash_summary_without_vehicle_name():
    agg = EventAggregator()
    summary = agg.create_mission_summary([_vehicle(T0, name=""), _death(T0)])
    assert summary == "Mission Event: Alice died in a crash"


def test_no_summary_without_crash():
    agg = EventAggregator()
    events = [_vehicle(T0, cause="Bob", weapon="laser"), _death(T0, cause="Bob", weapon="laser")]
    assert agg.create_mission_summary(events) == ""
    assert agg.create_mission_summary([]) == ""


def test_individual_messages():
    agg = EventAggregator()
    assert agg.individual_message(
        PendingEvent(EventType.ACTOR_STATE, T0, "Alice", cause="corpse")
    ) == "You turned to a corpse"
    death = agg.individual_message(_death(T0, cause="Bob", weapon="laser"))
    assert death.startswith("You were killed by: Bob")
    assert agg.individual_message(_death(T0, cause="Bob", weapon="unknown")).startswith("You died by ")
    vehicle = agg.individual_message(_vehicle(T0, cause="Bob"))
    assert vehicle.startswith("Vehicle ") and " was destroyed by " in vehicle
    spawn = PendingEvent(EventType.VEHICLE_SPAWN, T0, "Alice", raw_line="raw text")
    assert agg.individual_message(spawn) == "raw text"


def test_flush_keeps_recent_events():
    agg = EventAggregator()
    agg.add_event(_death(T0, cause="Bob", weapon="laser"))
    agg.add_event(_death(T0 + timedelta(seconds=10), cause="Carl", weapon="laser"))
    messages = agg.flush_old_events(T0 + timedelta(seconds=12))
    assert len(messages) == 1
    assert "Bob" in messages[0]
    assert len(agg.pending_events) == 1
    assert agg.pending_events[0].cause == "Carl"


def test_flush_window_boundary_is_inclusive():
    agg = EventAggregator()
    agg.add_event(_death(T0))
    assert agg.flush_old_events(T0 + agg.time_window) == []
    assert len(agg.pending_events) == 1


def test_flush_combines_crash_into_one_message():
    agg = EventAggregator()
    agg.add_event(_vehicle(T0))
    agg.add_event(_death(T0 + timedelta(seconds=1)))
    messages = agg.flush_old_events(T0 + timedelta(seconds=30))
    assert len(messages) == 1
    assert messages[0].startswith("Mission Event: ")
    assert agg.pending_events == []


def test_process_events_for_player():
    agg = EventAggregator()
    agg.add_event(_vehicle(T0))
    agg.add_event(_death(T0))
    other = PendingEvent(EventType.PLAYER_DEATH, T0, "Bob", cause="crash")
    agg.add_event(other)
    summary = agg.process_events_for_player("Alice", T0 + timedelta(seconds=2))
    assert summary.startswith("Mission Event: Alice")
    assert agg.pending_events == [other]


def test_process_events_for_player_without_events():
    agg = EventAggregator()
    assert agg.process_events_for_player("Alice", T0) == ""