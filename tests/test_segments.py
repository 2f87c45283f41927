import pytest

from killstalker.names import citizen_url
from killstalker.segments import (
    FeedSegment,
    create_enhanced_segments,
    create_kill_message_segments,
    create_vehicle_message_segments,
    group_lines,
    html_escape,
    line_segments,
    lines_to_segments,
)

TS = "2024-05-01 10:00:00"


def text(value):
    return FeedSegment("text", value)


def link(name):
    return FeedSegment("hyperlink", name, citizen_url(name))


def joined(segments):
    return "".join(s.text for s in segments)


def test_to_dict_omits_empty_url():
    assert text("hello").to_dict() == {"type": "text", "text": "hello"}


def test_hyperlink_round_trip():
    segment = link("Ghost_Rider")
    data = segment.to_dict()
    assert data["url"] == "https://robertsspaceindustries.com/en/citizens/Ghost_Rider"
    assert FeedSegment.from_dict(data) == segment


def test_from_dict_defaults_missing_url():
    assert FeedSegment.from_dict({"type": "text", "text": "x"}) == text("x")


@pytest.mark.parametrize("bad", [[1, 2], {"type": "text", "text": 5}])
def test_from_dict_rejects_malformed(bad):
    with pytest.raises(ValueError):
        FeedSegment.from_dict(bad)


def test_html_escape():
    assert html_escape("<a & b>") == "&lt;a &amp; b&gt;"


def test_passthrough_messages_stay_plain():
    line = "You died by Foo_Bar"
    assert create_enhanced_segments(line, TS, "Me") == [text(TS + " "), text(line), text("\n")]


def test_you_killed_with_weapon_links_victim():
    result = create_enhanced_segments("You killed: Bob_Pilot using Gatling", TS, "Me")
    assert result == [
        text(TS + " "),
        text("You killed: "),
        link("Bob_Pilot"),
        text(" using Gatling"),
        text("\n"),
    ]


def test_you_killed_npc_is_shortened():
    result = create_enhanced_segments(
        "You killed: PU_Human_Enemy_GroundCombat_NPC_Grunt using Rifle", TS, "Me"
    )
    assert result[2] == text("NPC")
    assert all(s.type == "text" for s in result)


def test_incapacitated_pet_is_shortened():
    result = create_enhanced_segments("You incapacitated: Kopion_pet_12", TS, "Me")
    assert result == [text(TS + " "), text("You incapacitated: "), text("NPC Kopion"), text("\n")]


def test_corpse_line_links_player():
    result = create_enhanced_segments("Alpha_One has turned to a corpse", TS, "Me")
    assert result == [text(TS + " "), link("Alpha_One"), text(" has turned to a corpse"), text("\n")]


def test_vehicle_disabled_with_weapon():
    result = create_enhanced_segments("Vehicle Cutlass disabled by Raider_X using Laser", TS, "Me")
    assert result == [
        text(TS + " "),
        text("Vehicle Cutlass disabled by "),
        link("Raider_X"),
        text(" using Laser"),
        text("\n"),
    ]


def test_vehicle_without_by_is_plain():
    line = "Vehicle destroyed somewhere"
    assert create_vehicle_message_segments(line, []) == [text(line), text("\n")]


def test_vehicle_suicide_not_linked():
    result = create_vehicle_message_segments("Vehicle Aurora disabled by suicide", [])
    assert result[1] == text("suicide")


def test_generic_line_reconstructs_text():
    line = "Monitoring: C:\\logs\\game.log"
    result = create_enhanced_segments(line, TS, "Me")
    assert joined(result) == TS + " " + line + "\n"
    assert all(s.type == "text" for s in result)


def test_generic_line_links_name_after_by():
    result = create_enhanced_segments("Shot down by Ghost_Rider", TS, "Me")
    assert link("Ghost_Rider") in result


def test_generic_line_links_own_name():
    result = create_enhanced_segments("Welcome back, Star_Pilot!", TS, "star pilot")
    assert FeedSegment("hyperlink", "Star_Pilot!", citizen_url("Star_Pilot")) in result


def test_kill_message_suicide_is_plain():
    result = create_kill_message_segments("You were killed by: suicide using suicide", [], "Me")
    assert result == [text("You were killed by: "), text("suicide"), text(" using suicide"), text("\n")]


def test_kill_message_not_at_start_only_newline():
    base = [text(TS + " ")]
    assert create_kill_message_segments("Note: You killed: Bob_Pilot", base, "Me") == base + [text("\n")]


def test_line_segments_links_after_killed():
    line = TS + " You killed: Ghost_Rider"
    result = line_segments(line)
    assert link("Ghost_Rider") in result
    assert joined(result) == line + "\n"


def test_line_segments_formats_npc():
    result = line_segments("You killed: PU_Human_Enemy_GroundCombat_NPC_Grunt")
    assert result[-2] == text("NPC")


def test_line_segments_empty_line():
    assert line_segments("") == [text("\n")]


def test_group_lines_splits_and_drops_partial():
    segments = [text("a"), text("b\nc"), link("Ghost_Rider"), text("\n"), text("tail")]
    assert group_lines(segments) == [
        [text("a"), text("b"), text("\n")],
        [text("c"), link("Ghost_Rider"), text("\n")],
    ]


def test_lines_to_segments_merges_text():
    lines = [[text("a"), text("b"), text("\n")], [link("Ghost_Rider"), text("x"), text("\n")]]
    assert lines_to_segments(lines) == [
        text("ab"),
        text("\n"),
        link("Ghost_Rider"),
        text("x"),
        text("\n"),
    ]


def test_lines_round_trip_through_grouping():
    lines = [[text("ab"), text("\n")], [text("c"), link("Ghost_Rider"), text("\n")]]
    assert group_lines(lines_to_segments(lines)) == lines


def test_lines_to_segments_empty_line_gives_newline():
    assert lines_to_segments([[]]) == [text("\n")]