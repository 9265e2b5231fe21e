from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Algorithm used when a tree is built without an explicit hasher
    hash_algorithm: str = Field(default="sha256", alias="BLOCKMERKLE_HASH_ALGORITHM")

    # Bloom pre-filter sizing
    prefilter_expected_items: int = Field(
        default=8, ge=1, alias="BLOCKMERKLE_PREFILTER_EXPECTED_ITEMS"
    )
    prefilter_false_positive_rate: float = Field(
        default=0.005, gt=0, lt=1, alias="BLOCKMERKLE_PREFILTER_FALSE_POSITIVE_RATE"
    )

    log_level: str = Field(default="INFO", alias="BLOCKMERKLE_LOG_LEVEL")
    # Hex characters of a digest kept in log output (0 disables shortening)
    log_digest_chars: int = Field(default=16, ge=0, alias="BLOCKMERKLE_LOG_DIGEST_CHARS")


settings = Settings()  # load at import
