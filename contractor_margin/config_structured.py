"""
Structured configuration for contractor_margin using typed dataclasses.

This is the AUTHORITATIVE source of truth for all configuration values.
``config.py`` derives its flat constants from here.

Usage:
    from contractor_margin.config_structured import get_config
    cfg = get_config()
    cfg.margin.danger_threshold   # 20.0
    cfg.rpc.protocol_version      # "2024-11-05"
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class MarginConfig:
    """Margin health thresholds (percent).

    A margin strictly below ``danger_threshold`` is flagged; a margin at or
    above ``healthy_threshold`` is healthy; anything between is acceptable.
    """

    danger_threshold: float = 20.0
    healthy_threshold: float = 30.0

    def __post_init__(self):
        if self.healthy_threshold < self.danger_threshold:
            raise ValueError(
                f"healthy_threshold ({self.healthy_threshold}) must be >= "
                f"danger_threshold ({self.danger_threshold})"
            )


@dataclass
class ReportConfig:
    """Presentation settings for stats and report payloads."""

    display_decimals: int = 1
    month_window: int = 12       # months offered by the report selector
    recent_jobs: int = 5         # jobs listed on the dashboard summary

    def __post_init__(self):
        if self.display_decimals < 0:
            raise ValueError(f"display_decimals must be >= 0, got {self.display_decimals}")
        if self.month_window < 1:
            raise ValueError(f"month_window must be >= 1, got {self.month_window}")


@dataclass
class RpcConfig:
    """Static metadata returned by the tool-call endpoint's ``initialize``."""

    jsonrpc_version: str = "2.0"
    protocol_version: str = "2024-11-05"
    server_name: str = "contractormargin-mcp"
    server_version: str = "1.0.0"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "structured"  # "structured" or "json"


@dataclass
class SystemConfig:
    """Top-level configuration aggregating all subsystems."""

    margin: MarginConfig = field(default_factory=MarginConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ── Module-level singleton ──────────────────────────────────────────

_CONFIG: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """Return the singleton SystemConfig instance.

    On first call, instantiates the default SystemConfig. Subsequent
    calls return the same instance so all callers share one source of
    truth.
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = SystemConfig()
    return _CONFIG
