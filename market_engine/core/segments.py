"""Segment definitions: the fixed per-segment tables the scorer consults.

Each segment carries:
  ScoringWeights      five axis weights summing to 100
  FeaturePreferences  how much the segment values each tech family (sum 1.0)
  SegmentProfile      the above plus quality expectation, elasticity and
                        raw material cost used for the dynamic price floor

Lookups are exhaustive: asking for a segment that was never registered
raises ``KeyError`` so configuration mistakes surface in tests.
"""

from __future__ import annotations

import math

from pydantic.dataclasses import dataclass as pydantic_dataclass

from market_engine.core.enums import Segment, TechFamily

WEIGHT_TOTAL = 100.0


@pydantic_dataclass(frozen=True)
class ScoringWeights:
    """Axis weights for one segment. Price-led segments weight price highest."""

    price: float
    quality: float
    brand: float
    esg: float
    features: float

    def __post_init__(self) -> None:
        total = self.price + self.quality + self.brand + self.esg + self.features
        if not math.isclose(total, WEIGHT_TOTAL, abs_tol=1e-9):
            raise ValueError(f"scoring weights must sum to {WEIGHT_TOTAL:g}, got {total:g}")


@pydantic_dataclass(frozen=True)
class FeaturePreferences:
    """Preference per tech family, each 0-1, summing to 1."""

    battery: float
    camera: float
    ai: float
    durability: float
    display: float
    connectivity: float

    def __post_init__(self) -> None:
        total = sum(self.weight(f) for f in TechFamily)
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"feature preferences must sum to 1.0, got {total:g}")

    def weight(self, family: TechFamily) -> float:
        return getattr(self, family.name.lower())


@pydantic_dataclass(frozen=True)
class SegmentProfile:
    """Immutable blueprint describing how one segment scores products."""

    segment: Segment
    weights: ScoringWeights
    quality_expectation: float
    feature_preferences: FeaturePreferences
    price_elasticity: float
    raw_material_cost: float


# ---------------------------------------------------------------------------
# Segment registry
# ---------------------------------------------------------------------------

SEGMENT_PROFILES: dict[Segment, SegmentProfile] = {}


def _reg(p: SegmentProfile) -> None:
    SEGMENT_PROFILES[p.segment] = p


_reg(SegmentProfile(
    segment=Segment.BUDGET,
    weights=ScoringWeights(price=50, quality=22, brand=8, esg=8, features=12),
    quality_expectation=50,
    feature_preferences=FeaturePreferences(
        battery=0.35, camera=0.08, ai=0.05, durability=0.25, display=0.15, connectivity=0.12,
    ),
    price_elasticity=2.5,
    raw_material_cost=50,
))
_reg(SegmentProfile(
    segment=Segment.GENERAL,
    weights=ScoringWeights(price=32, quality=28, brand=10, esg=10, features=20),
    quality_expectation=65,
    feature_preferences=FeaturePreferences(
        battery=0.18, camera=0.20, ai=0.15, durability=0.12, display=0.20, connectivity=0.15,
    ),
    price_elasticity=1.8,
    raw_material_cost=100,
))
_reg(SegmentProfile(
    segment=Segment.ENTHUSIAST,
    weights=ScoringWeights(price=20, quality=40, brand=10, esg=10, features=20),
    quality_expectation=80,
    feature_preferences=FeaturePreferences(
        battery=0.08, camera=0.30, ai=0.12, durability=0.05, display=0.30, connectivity=0.15,
    ),
    price_elasticity=1.2,
    raw_material_cost=200,
))
_reg(SegmentProfile(
    segment=Segment.PROFESSIONAL,
    weights=ScoringWeights(price=15, quality=42, brand=10, esg=16, features=17),
    quality_expectation=90,
    feature_preferences=FeaturePreferences(
        battery=0.10, camera=0.12, ai=0.30, durability=0.08, display=0.15, connectivity=0.25,
    ),
    price_elasticity=0.8,
    raw_material_cost=350,
))
_reg(SegmentProfile(
    segment=Segment.ACTIVE_LIFESTYLE,
    weights=ScoringWeights(price=25, quality=32, brand=12, esg=10, features=21),
    quality_expectation=70,
    feature_preferences=FeaturePreferences(
        battery=0.20, camera=0.08, ai=0.05, durability=0.40, display=0.10, connectivity=0.17,
    ),
    price_elasticity=1.5,
    raw_material_cost=150,
))


def get_segment_profile(segment: Segment) -> SegmentProfile:
    return SEGMENT_PROFILES[segment]


def price_elasticity(segment: Segment) -> float:
    """Demand sensitivity to price; higher means more price sensitive."""
    return SEGMENT_PROFILES[segment].price_elasticity
