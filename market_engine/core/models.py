"""Core input models: products, factories, team snapshots, market state.

Everything here is supplied by collaborators outside the engine and is
treated as read-only. Market evolution produces new values with
``dataclasses.replace`` rather than mutating.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from market_engine.core.enums import DevelopmentStatus, Region, Segment, TechFamily


@dataclass(frozen=True, slots=True)
class FeatureSet:
    """Product capability per tech family, each 0-100."""

    battery: float = 0.0
    camera: float = 0.0
    ai: float = 0.0
    durability: float = 0.0
    display: float = 0.0
    connectivity: float = 0.0

    def value(self, family: TechFamily) -> float:
        return _FEATURE_GETTERS[family](self)


_FEATURE_GETTERS = {
    TechFamily.BATTERY: lambda f: f.battery,
    TechFamily.CAMERA: lambda f: f.camera,
    TechFamily.AI: lambda f: f.ai,
    TechFamily.DURABILITY: lambda f: f.durability,
    TechFamily.DISPLAY: lambda f: f.display,
    TechFamily.CONNECTIVITY: lambda f: f.connectivity,
}


@dataclass(frozen=True, slots=True)
class Product:
    """A team's product snapshot for one segment."""

    product_id: str
    segment: Segment
    price: float
    quality: float                      # 0-100
    name: str = ""
    features: float = 0.0               # legacy scalar, 0-100
    feature_set: FeatureSet | None = None
    applied_techs: tuple[str, ...] = ()
    development_status: DevelopmentStatus = DevelopmentStatus.LAUNCHED
    unit_cost: float = 0.0

    @property
    def launched(self) -> bool:
        return self.development_status == DevelopmentStatus.LAUNCHED


@dataclass(frozen=True, slots=True)
class Factory:
    """The parts of a factory the market engine reads."""

    factory_id: str
    region: Region = Region.NORTH_AMERICA
    efficiency: float = 0.7
    defect_rate: float = 0.05
    warranty_reduction: float = 0.0


@dataclass(frozen=True, slots=True)
class TeamState:
    """Per-team snapshot after the business modules have run for the round."""

    brand_value: float = 0.0            # 0-1
    esg_score: float = 0.0              # 0-1000
    rd_budget: float = 0.0
    products: tuple[Product, ...] = ()
    factories: tuple[Factory, ...] = ()
    eps: float = 0.0

    def product_for(self, segment: Segment) -> Product | None:
        """First product targeting *segment*, launched or not."""
        for product in self.products:
            if product.segment == segment:
                return product
        return None

    def has_launched_in(self, segment: Segment) -> bool:
        return any(p.segment == segment and p.launched for p in self.products)

    @property
    def primary_factory(self) -> Factory | None:
        return self.factories[0] if self.factories else None

    def products_at_quality(self, min_quality: float) -> int:
        return sum(1 for p in self.products if p.quality >= min_quality)


@dataclass(frozen=True, slots=True)
class TeamEntry:
    """A participant in the round: identifier plus state snapshot."""

    team_id: str
    state: TeamState


@dataclass(frozen=True, slots=True)
class PriceRange:
    min_price: float
    max_price: float

    @property
    def midpoint(self) -> float:
        return (self.min_price + self.max_price) / 2


@dataclass(frozen=True, slots=True)
class SegmentDemand:
    total_demand: float
    price_range: PriceRange
    growth_rate: float = 0.0


@dataclass(frozen=True, slots=True)
class EconomicConditions:
    gdp: float = 2.5                    # % growth
    inflation: float = 2.0              # %
    consumer_confidence: float = 75.0   # 0-100, baseline 75
    unemployment_rate: float = 4.5      # %


@dataclass(frozen=True, slots=True)
class InterestRates:
    federal_rate: float = 5.0
    ten_year_bond: float = 4.5
    corporate_bond: float = 6.0


@dataclass(frozen=True, slots=True)
class MarketPressures:
    price_competition: float = 0.5      # 0-1
    quality_expectations: float = 0.6   # 0-1
    sustainability_premium: float = 0.3 # 0-1, rises over time


@dataclass(frozen=True, slots=True)
class DynamicPriceExpectation:
    """EMA-smoothed price expectation for one segment."""

    expected_price: float
    underserved_factor: float           # 0-1, higher = fewer competitors
    competitor_count: int
    price_floor: float
    price_ceiling: float


@dataclass(frozen=True, slots=True)
class MarketState:
    """Shared market conditions for one round."""

    round_number: int
    demand_by_segment: dict[Segment, SegmentDemand]
    economic_conditions: EconomicConditions = field(default_factory=EconomicConditions)
    market_pressures: MarketPressures = field(default_factory=MarketPressures)
    interest_rates: InterestRates = field(default_factory=InterestRates)
    fx_rates: dict[str, float] = field(default_factory=dict)
    fx_volatility: float = 0.15
    dynamic_pricing: dict[Segment, DynamicPriceExpectation] = field(default_factory=dict)

    def demand_for(self, segment: Segment) -> SegmentDemand:
        """Segment demand data. A missing segment is a configuration error."""
        return self.demand_by_segment[segment]


def create_initial_market_state() -> MarketState:
    """Market conditions for the first round of a new match."""
    return MarketState(
        round_number=1,
        demand_by_segment={
            Segment.BUDGET: SegmentDemand(500_000, PriceRange(100, 300), 0.02),
            Segment.GENERAL: SegmentDemand(400_000, PriceRange(300, 600), 0.03),
            Segment.ENTHUSIAST: SegmentDemand(200_000, PriceRange(600, 1000), 0.04),
            Segment.PROFESSIONAL: SegmentDemand(100_000, PriceRange(1000, 1500), 0.02),
            Segment.ACTIVE_LIFESTYLE: SegmentDemand(150_000, PriceRange(400, 800), 0.05),
        },
        fx_rates={
            "EUR/USD": 1.10,
            "GBP/USD": 1.27,
            "JPY/USD": 0.0067,
            "CNY/USD": 0.14,
        },
    )


@dataclass(frozen=True, slots=True)
class EventEffect:
    """One custom adjustment carried by a market event, e.g. ``("gdp", -1.5)``."""

    target: str
    modifier: float


@dataclass(frozen=True, slots=True)
class EconomicEvent:
    """A scheduled or facilitator-triggered shock to the shared market.

    Named kinds (``recession``, ``boom``, ...) carry built-in effects; any
    other kind applies its ``effects`` list.
    """

    kind: str
    title: str = ""
    description: str = ""
    effects: tuple[EventEffect, ...] = ()
