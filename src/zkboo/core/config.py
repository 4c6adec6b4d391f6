"""Configuration management for zkboo.

Settings are read from environment variables (prefix ``ZKBOO_``) or a ``.env``
file. The protocol shape itself (3 parties, 2 revealed, 32-bit words) is fixed
and lives in module constants rather than in settings.
"""

import os
import logging
from typing import Optional, Literal, Dict, Any
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configure module logger
logger = logging.getLogger(__name__)

# Fixed protocol shape
PARTIES = 3
REVEALED_PARTIES = 2
WORD_BITS = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The repetition count is the security parameter: a cheating prover
    survives one repetition with probability 1/3, so the soundness error of a
    proof is (1/3) ** repetitions.
    """

    # ============ PROTOCOL ============
    repetitions: int = Field(
        137,
        ge=1,
        le=4096,
        description="Independent repetitions per proof (soundness (1/3)^R)"
    )
    compact_response: bool = Field(
        True,
        description="Omit the derivable view log of the first revealed party"
    )
    deterministic: bool = Field(
        False,
        description="Derive seeds from a counter instead of the OS CSPRNG (tests only)"
    )

    # ============ PERFORMANCE ============
    max_workers: int = Field(
        2,
        ge=1,
        le=64,
        description="Thread pool size used to run repetitions"
    )

    # ============ LOGGING / OUTPUT ============
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO",
        description="Logging verbosity level"
    )
    transcript_dir: str = Field(
        ".",
        description="Default directory for exported proof transcripts"
    )

    model_config = SettingsConfigDict(
        env_prefix="ZKBOO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> str:
        """Accept lower-case level names from the environment."""
        if v is None or str(v).strip() == "":
            return "INFO"
        return str(v).strip().upper()

    @field_validator("transcript_dir")
    @classmethod
    def validate_transcript_dir(cls, v: str) -> str:
        """Validate and sanitize transcript directory path."""
        v = os.path.normpath(v)
        if ".." in v.split(os.sep):
            raise ValueError("Path traversal detected in transcript_dir")
        return v

    def soundness_error(self) -> float:
        """Probability that a false statement survives every repetition."""
        return (1.0 / PARTIES) ** self.repetitions

    def describe(self) -> Dict[str, Any]:
        """Return configuration plus the fixed protocol shape, for display."""
        config_dict = self.model_dump()
        config_dict.update({
            "parties": PARTIES,
            "revealed_parties": REVEALED_PARTIES,
            "word_bits": WORD_BITS,
        })
        return config_dict

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        logger.debug(f"Configuration loaded: {self.model_dump()}")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()


# Export singleton instance
settings = get_settings()


__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "PARTIES",
    "REVEALED_PARTIES",
    "WORD_BITS",
]
