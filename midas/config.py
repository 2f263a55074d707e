"""Configuration management for the trading controller."""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .core.policy import FailurePolicies
from .core.types import CoinPair


class PairConfig(BaseModel):
    """Traded coin pair."""
    base: str = "TON"
    quote: str = "USDT"

    def coins(self) -> CoinPair:
        return CoinPair(self.base, self.quote)


class VenueKind(str, Enum):
    PAPER = "paper"
    CCXT = "ccxt"


class VenueConfig(BaseModel):
    """Venue configuration."""
    name: str
    kind: VenueKind = VenueKind.PAPER
    # ccxt exchange id, e.g. "binance"; defaults to the venue name
    exchange_id: Optional[str] = None
    # Forwarded verbatim to the ccxt client constructor (keys, sandbox, ...)
    options: Dict[str, Any] = Field(default_factory=dict)
    sandbox: bool = True  # Default to sandbox for safety
    # Paper venue book and balances
    balances: Dict[str, float] = Field(default_factory=dict)
    bids: List[List[float]] = Field(default_factory=list)
    asks: List[List[float]] = Field(default_factory=list)


class CalculatorConfig(BaseModel):
    """Calculator configuration."""
    profit_margin: float = 0.01
    fee: float = 0.001
    min_amount: float = 0.1
    dust_amount: float = 0.1

    @field_validator("profit_margin", "fee")
    @classmethod
    def _fraction(cls, value: float) -> float:
        if not 0.0 <= value < 1.0:
            raise ValueError(f"must be in [0, 1), got {value}")
        return value

    @field_validator("min_amount", "dust_amount")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0.0:
            raise ValueError(f"must be non-negative, got {value}")
        return value


class ResellerConfig(BaseModel):
    """Reseller configuration."""
    enabled: bool = True
    min_profit: float = 0.01
    depth: int = 5
    accept_limit_fills: bool = False
    max_trades_per_cycle: int = 10
    snapshot_path: Optional[str] = None


class LimitMasterConfig(BaseModel):
    """LimitMaster configuration."""
    enabled: bool = True
    depth: int = 15


class SchedulerConfig(BaseModel):
    """Cycle timing configuration."""
    interval_s: float = 10.0
    retry_delay_s: float = 30.0
    venue_timeout_s: float = 10.0


class StorageConfig(BaseModel):
    """Storage configuration."""
    db_path: str = "midas.sqlite"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = "midas.log"
    file_level: str = "DEBUG"


class Config(BaseModel):
    """Main configuration model."""
    pair: PairConfig = Field(default_factory=PairConfig)
    venues: List[VenueConfig] = Field(default_factory=list)
    calculators: CalculatorConfig = Field(default_factory=CalculatorConfig)
    reseller: ResellerConfig = Field(default_factory=ResellerConfig)
    limit_master: LimitMasterConfig = Field(default_factory=LimitMasterConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    failure_policy: FailurePolicies = Field(default_factory=FailurePolicies)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _unique_venue_names(self) -> "Config":
        names = [venue.name for venue in self.venues]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate venue names: {duplicates}")
        return self

    def get_venue(self, name: str) -> Optional[VenueConfig]:
        """Get venue configuration by name."""
        for venue in self.venues:
            if venue.name == name:
                return venue
        return None

    @classmethod
    def load_from_file(cls, config_path: str = "config.yaml") -> "Config":
        """Load configuration from YAML file with environment variable substitution."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}

        # Substitute environment variables
        config_str = yaml.dump(config_data)
        for key, value in os.environ.items():
            config_str = config_str.replace(f"${{{key}}}", value)

        config_data = yaml.safe_load(config_str) or {}
        return cls(**config_data)


def get_config(config_path: str = "config.yaml") -> Config:
    """Get configuration instance."""
    return Config.load_from_file(config_path)
