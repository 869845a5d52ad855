from decimal import Decimal
from enum import Enum
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    catalog_origin: str = "http://localhost:8001"
    player_origin: str = "http://localhost:8002"
    catalog_message_url: Optional[AnyHttpUrl] = None
    player_message_url: Optional[AnyHttpUrl] = None
    catalog_source_url: Optional[AnyHttpUrl] = None
    starting_balance: Decimal = Decimal("100")
    settle_delay_seconds: float = 1.0
    min_multiplier: int = -100
    max_multiplier: int = 200
    catalog_failure_rate: float = 0.05
    catalog_latency_seconds: float = 0.5
    allow_stale_reselect: bool = True
    db_url: str = "sqlite://"
    request_timeout_seconds: float = 10.0
    log_level: str = "INFO"

settings = Settings()

class EnvelopeKind(str, Enum):
    SELECT_ITEM = "SELECT_ITEM"
    BALANCE_DELTA = "BALANCE_DELTA"

class Surface(str, Enum):
    CATALOG = "catalog"
    PLAYER = "player"

# hundredths: a multiplier of 150 pays 1.5x the wager on top of the stake
MULTIPLIER_SCALE = 100
