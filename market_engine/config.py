"""Market engine configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass

from market_engine.core.enums import Region


@dataclass(frozen=True)
class MarketConfig:
    """Immutable tuning for the market simulation."""

    # Softmax allocation
    # 10 gives (70,65,60,55) -> ~46/28/17/10% and (80,60,55,50) -> ~79/11/6/4%
    softmax_temperature: float = 10.0

    # Crowding
    crowding_threshold: int = 3
    crowding_penalty_per_product: float = 0.05

    # First mover
    first_mover_max_bonus: float = 0.15
    first_mover_decay_rounds: int = 3
    first_mover_single_competitor_factor: float = 0.5  # one rival already present

    # Arms race / brand erosion
    arms_race_bonus: float = 0.05
    brand_erosion_threshold: float = 0.20
    brand_erosion_sensitivity: float = 0.5

    # Price scoring (static mode)
    quality_price_tolerance: float = 0.002     # per quality point, 100 -> +20% max price
    price_floor_penalty_threshold: float = 0.15
    price_floor_penalty_max: float = 0.30

    # Price scoring (dynamic mode)
    dynamic_price_sensitivity: float = 2.0     # tanh slope on price advantage
    underserved_price_bonus: float = 0.25
    dynamic_floor_min_multiplier: float = 0.5
    dynamic_price_ema_alpha: float = 0.3
    price_ceiling_multiplier: float = 1.2
    labor_cost_per_unit: float = 20.0
    overhead_cost_per_unit: float = 15.0

    # Quality / feature / brand
    quality_feature_bonus_cap: float = 1.2
    excess_return_rate: float = 0.5            # share of sqrt(excess) kept above expectation
    quality_market_share_bonus: float = 0.001  # per quality point, additive
    brand_critical_mass_high: float = 0.55
    brand_critical_mass_low: float = 0.30
    brand_high_multiplier: float = 1.1
    brand_low_multiplier: float = 0.9

    # Flexibility (diversification) bonus
    flexibility_bonus_full: float = 0.04
    flexibility_bonus_partial: float = 0.015
    flexibility_min_rd: float = 3_000_000
    flexibility_min_brand: float = 0.45
    flexibility_min_efficiency: float = 0.7
    flexibility_min_products: int = 2
    flexibility_product_quality: float = 55.0

    # Demand
    confidence_baseline: float = 75.0
    inflation_demand_weight: float = 0.5
    demand_noise: float = 0.05                 # +/- fraction, market stream

    # Rubber banding
    rubber_band_start_round: int = 3
    rubber_band_threshold: float = 0.5
    rubber_band_leading_ratio: float = 2.0
    rubber_band_trailing_boost: float = 1.15
    rubber_band_leading_penalty: float = 0.92

    # ESG risk
    esg_penalty_threshold: float = 300.0
    esg_penalty_max: float = 0.08
    esg_penalty_min: float = 0.01
    esg_scale: float = 1000.0

    # Revenue attribution
    default_region: Region = Region.NORTH_AMERICA

    # Logging
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.softmax_temperature <= 0:
            raise ValueError("softmax_temperature must be positive")
        if self.first_mover_decay_rounds <= 0:
            raise ValueError("first_mover_decay_rounds must be positive")
        if self.esg_penalty_threshold <= 0:
            raise ValueError("esg_penalty_threshold must be positive")
        if self.esg_penalty_min > self.esg_penalty_max:
            raise ValueError("esg_penalty_min cannot exceed esg_penalty_max")
        if not 0.0 < self.dynamic_price_ema_alpha <= 1.0:
            raise ValueError("dynamic_price_ema_alpha must be in (0, 1]")
        if self.crowding_threshold < 0 or self.crowding_penalty_per_product < 0:
            raise ValueError("crowding settings must be non-negative")


DEFAULT_CONFIG = MarketConfig()
