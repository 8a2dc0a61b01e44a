"""
Application configuration using pydantic-settings.

All settings are loaded from environment variables or .env file.
Per-device inventory lives in a YAML file (see ``core/inventory.py``);
this module only holds deployment-wide knobs.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Scheduling
    polling_interval_ms: int = Field(
        default=60_000,
        gt=0,
        description="Fixed polling cycle interval in milliseconds.",
    )
    max_concurrent_device_polls: int = Field(
        default=10,
        gt=0,
        description="Maximum number of devices polled at the same time within one cycle.",
    )
    device_poll_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound in seconds for one device's whole poll within a cycle.",
    )

    # Rollover reconciliation
    wrap_plausibility_ceiling_bytes: int = Field(
        default=2 * 1024**3,
        gt=0,
        description="Largest single-wrap delta accepted without rate history corroborating it.",
    )
    wrap_ceiling_widths: str = Field(
        default="32",
        description="Comma-separated counter widths the plausibility ceiling applies to.",
    )
    max_wraps_before_reset: int = Field(
        default=10,
        ge=0,
        description="Wrap count above which a backward move is treated as a counter reset (0: every drop over the ceiling).",
    )

    @property
    def polling_interval_seconds(self) -> float:
        """Polling interval converted to seconds (APScheduler works in seconds)."""
        return self.polling_interval_ms / 1000

    @property
    def wrap_ceiling_width_set(self) -> frozenset[int]:
        """Parse ``wrap_ceiling_widths`` into a set of bit widths."""
        return frozenset(
            int(w.strip()) for w in self.wrap_ceiling_widths.split(",") if w.strip()
        )

    # SNMP transport
    snmp_port: int = Field(default=161, description="Default UDP port for devices without one")
    snmp_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Per-request SNMP timeout in seconds.",
    )
    snmp_soft_retries: int = Field(
        default=1,
        ge=0,
        le=1,
        description="Retries per query after a transport timeout (never after an error response).",
    )
    snmp_max_oids_per_request: int = Field(
        default=40,
        gt=0,
        description="Largest number of OIDs sent in one GET; bigger batches are split.",
    )
    snmp_mock: bool = Field(
        default=False,
        description="Use the in-process mock engine instead of real SNMP traffic.",
    )

    # Inventory & emission
    devices_file: str = Field(
        default="config/devices.yaml",
        description="YAML file listing the devices to poll.",
    )
    sample_sink: str = Field(
        default="log",
        description="Where samples go: 'log' or 'jsonl'.",
    )
    sample_output_path: str = Field(
        default="samples.jsonl",
        description="Output file for the 'jsonl' sample sink.",
    )

    # Application
    app_name: str = Field(default="bwcollector", description="Application name")
    log_level: str = Field(default="INFO", description="Root logging level")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (Singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
