"""Cost estimator configuration settings.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, market tier, etc.)
load_dotenv()

MARKET_TIERS = ("LOW", "MEDIUM", "HIGH")


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Calculator Configuration
    default_market_tier: str = field(default_factory=lambda: os.getenv("DEFAULT_MARKET_TIER", "MEDIUM").upper())
    default_contingency_percent: float = field(default_factory=lambda: float(os.getenv("DEFAULT_CONTINGENCY_PERCENT", "0.05")))

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: os.getenv("LOG_JSON", "false").lower() == "true")

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If the market tier or contingency is out of range.
        """
        if self.default_market_tier not in MARKET_TIERS:
            raise ValueError(
                f"DEFAULT_MARKET_TIER must be one of {MARKET_TIERS}, got {self.default_market_tier!r}"
            )
        if not 0.0 <= self.default_contingency_percent <= 1.0:
            raise ValueError(
                "DEFAULT_CONTINGENCY_PERCENT must be a fraction between 0 and 1"
            )

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Singleton settings instance
settings = Settings()
