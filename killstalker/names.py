"""Classification and formatting of names that appear in game log messages."""

from __future__ import annotations

CITIZEN_URL_BASE = "https://robertsspaceindustries.com/en/citizens/"

_COMMON_WORDS = frozenset(
    {
        "system", "server", "admin", "you", "killed", "using", "with", "the", "and",
        "or", "by", "from", "to", "at", "in", "on", "for", "was", "were", "has",
        "have", "had", "been", "being", "are", "is", "am", "will", "would", "could",
        "should", "may", "might", "can", "cannot", "turned", "corpse", "incapacitated",
    }
)

_RESERVED_FRAGMENTS = ("system", "server", "admin")

_SYSTEM_NAMES = (
    "collision", "fall", "suicide", "system", "server", "admin",
    "ballistic", "energy", "missile", "torpedo", "cannon", "rifle",
    "pistol", "shotgun", "sniper", "launcher", "turret", "shield",
    "armor", "helmet", "suit", "vehicle", "ship", "quantum", "jump",
    "unknown",
)

_NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"
)


def citizen_url(name: str) -> str:
    """Return the public profile URL for a citizen name."""
    return CITIZEN_URL_BASE + name


def is_npc_name(name: str) -> bool:
    """Tell whether a name belongs to a non-player character."""
    return (
        "PU_Human_Enemy_GroundCombat_NPC" in name
        or "_NPC_" in name
        or "NPC_" in name
    )


def is_pet_name(name: str) -> bool:
    """Tell whether a name belongs to a pet."""
    return "_pet_" in name.lower() or name.startswith("Pet_")


def format_npc_name(name: str) -> str:
    """Shorten an NPC name to ``NPC``; leave other names unchanged."""
    return "NPC" if is_npc_name(name) else name


def format_pet_name(name: str) -> str:
    """Shorten a pet name to ``NPC <kind>``; leave other names unchanged."""
    if not is_pet_name(name):
        return name
    parts = name.split("_")
    if name.startswith("Pet_"):
        return "NPC " + parts[1]
    return "NPC " + parts[0]


def is_system_name(name: str) -> bool:
    """Tell whether a name looks like a weapon, vehicle, damage or system name."""
    lower = name.lower()
    if any(fragment in lower for fragment in _SYSTEM_NAMES):
        return True
    return is_npc_name(name) or is_pet_name(name)


def is_valid_player_name(name: str) -> bool:
    """Tell whether a string plausibly is a player's handle."""
    if not 3 <= len(name) <= 30:
        return False
    if any(ch not in _NAME_CHARS for ch in name):
        return False
    lower = name.lower()
    if lower in _COMMON_WORDS:
        return False
    if any(fragment in lower for fragment in _RESERVED_FRAGMENTS):
        return False
    if is_npc_name(name) or is_pet_name(name):
        return False
    return not is_system_name(name)


def should_hyperlink_name(name: str) -> bool:
    """Tell whether a name should be rendered as a link to a citizen profile."""
    lower = name.lower()
    if lower in ("suicide", "unknown"):
        return False
    if name.upper() == "SELF":
        return False
    if is_npc_name(name) or is_pet_name(name):
        return False
    return is_valid_player_name(name)