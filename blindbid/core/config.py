"""
Auction configuration parameters for BlindBid.

Defines phase durations, resource limits and operational paths. Values come
from defaults, a `.env` file and `BLINDBID_*` environment variables, in
increasing order of precedence.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "BLINDBID_"


class AuctionConfig(BaseModel):
    """Auction-wide configuration parameters"""

    # Phase durations (seconds)
    bidding_time: int = Field(default=3600, gt=0)
    reveal_time: int = Field(default=1800, gt=0)

    # Resource limits
    max_bids_per_participant: int = Field(default=256, gt=0)
    max_secret_size: int = Field(default=1024, gt=0)

    # Operations
    log_level: str = "INFO"
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


def load_config(env_file: Optional[str] = None, **overrides) -> AuctionConfig:
    """
    Load configuration from environment.

    Args:
        env_file: Optional path to a dotenv file. Variables already present
            in the process environment are not overwritten.
        overrides: Explicit values that win over the environment

    Returns:
        AuctionConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    values = {}
    for name in AuctionConfig.model_fields:
        raw = os.environ.get(ENV_PREFIX + name.upper())
        if raw is not None:
            values[name] = raw
    values.update(overrides)

    return AuctionConfig(**values)
