"""Enumerations used throughout the engine.

Member order is significant: the simulator iterates segments and regions in
declaration order, which fixes the order of RNG draws and event emission.
"""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class Segment(IntEnum):
    """Demand segments, in simulation order."""

    BUDGET = 0
    GENERAL = 1
    ENTHUSIAST = 2
    PROFESSIONAL = 3
    ACTIVE_LIFESTYLE = 4

    @property
    def label(self) -> str:
        return SEGMENT_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> Segment:
        for segment, name in SEGMENT_LABELS.items():
            if name == label:
                return segment
        raise KeyError(f"Unknown segment label: {label!r}")


SEGMENT_LABELS: dict[Segment, str] = {
    Segment.BUDGET: "Budget",
    Segment.GENERAL: "General",
    Segment.ENTHUSIAST: "Enthusiast",
    Segment.PROFESSIONAL: "Professional",
    Segment.ACTIVE_LIFESTYLE: "Active Lifestyle",
}


@unique
class Region(IntEnum):
    """Facility regions used for revenue attribution."""

    NORTH_AMERICA = 0
    EUROPE = 1
    ASIA = 2
    MENA = 3

    @property
    def label(self) -> str:
        return REGION_LABELS[self]


REGION_LABELS: dict[Region, str] = {
    Region.NORTH_AMERICA: "North America",
    Region.EUROPE: "Europe",
    Region.ASIA: "Asia",
    Region.MENA: "MENA",
}


@unique
class Subsystem(IntEnum):
    """RNG streams for deterministic randomness isolation."""

    GENERAL = 0
    MARKET = 1
    FACTORY = 2
    HR = 3
    MARKETING = 4
    RD = 5
    FINANCE = 6


# Seed-derivation keys. GENERAL derives from the "round" key.
SUBSYSTEM_KEYS: dict[Subsystem, str] = {
    Subsystem.GENERAL: "round",
    Subsystem.MARKET: "market",
    Subsystem.FACTORY: "factory",
    Subsystem.HR: "hr",
    Subsystem.MARKETING: "marketing",
    Subsystem.RD: "rd",
    Subsystem.FINANCE: "finance",
}


@unique
class DevelopmentStatus(IntEnum):
    """Product development lifecycle."""

    IN_DEVELOPMENT = 0
    READY = 1
    LAUNCHED = 2


@unique
class TechFamily(IntEnum):
    """The six feature axes a product can invest in."""

    BATTERY = 0
    CAMERA = 1
    AI = 2
    DURABILITY = 3
    DISPLAY = 4
    CONNECTIVITY = 5


@unique
class MarketEventType(IntEnum):
    """Competitive-intelligence feed event categories."""

    PRODUCT_LAUNCH = 0
    PRICE_CHANGE = 1
    SHARE_SHIFT = 2
    PATENT_FILED = 3
    PATENT_LICENSED = 4
    SEGMENT_UNDERSERVED = 5
    SEGMENT_FLOODED = 6
    ACHIEVEMENT_UNLOCKED = 7
    TECH_COMPLETED = 8
    BRAND_EROSION = 9


@unique
class EventImpact(IntEnum):
    """Impact of a market event from the affected team's perspective."""

    NEUTRAL = 0
    POSITIVE = 1
    NEGATIVE = 2
