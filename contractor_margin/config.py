"""
Central configuration for contractor_margin.

Flat-constant interface. Every value that has a structured counterpart is
derived from the ``config_structured`` singleton so there is a single
source of truth.

Search for ``# STATUS:`` to see where each constant is consumed.
"""
from .config_structured import get_config as _get_config

_cfg = _get_config()

# ── Margin Health ─────────────────────────────────────────────────────
DANGER_MARGIN_THRESHOLD = _cfg.margin.danger_threshold    # STATUS: ACTIVE - margin/calculator.py, margin/classification.py
HEALTHY_MARGIN_THRESHOLD = _cfg.margin.healthy_threshold  # STATUS: ACTIVE - margin/classification.py

# ── Reporting ─────────────────────────────────────────────────────────
DISPLAY_DECIMALS = _cfg.report.display_decimals   # STATUS: ACTIVE - stats/report rounding
REPORT_MONTH_WINDOW = _cfg.report.month_window    # STATUS: ACTIVE - api/routers/reports.py month selector
DASHBOARD_RECENT_JOBS = _cfg.report.recent_jobs   # STATUS: ACTIVE - margin/aggregation.py dashboard_summary

# ── Tool-call RPC ─────────────────────────────────────────────────────
RPC_JSONRPC_VERSION = _cfg.rpc.jsonrpc_version    # STATUS: ACTIVE - rpc/protocol.py envelope tag
RPC_PROTOCOL_VERSION = _cfg.rpc.protocol_version  # STATUS: ACTIVE - rpc/dispatcher.py initialize
RPC_SERVER_NAME = _cfg.rpc.server_name            # STATUS: ACTIVE - rpc/dispatcher.py initialize
RPC_SERVER_VERSION = _cfg.rpc.server_version      # STATUS: ACTIVE - rpc/dispatcher.py initialize

# ── Logging ───────────────────────────────────────────────────────────
LOG_LEVEL = _cfg.logging.level                    # STATUS: ACTIVE - api/main.py; "DEBUG", "INFO", "WARNING", "ERROR"
LOG_FORMAT = _cfg.logging.format                  # STATUS: ACTIVE - api/main.py; "structured" or "json"


# ── Config Validation ──────────────────────────────────────────────

def validate_config() -> list:
    """Check config for common misconfigurations.

    Returns a list of dicts: [{"level": "WARNING"|"ERROR", "message": str}].
    Called on server startup.
    """
    import os

    issues = []

    # 1. Thresholds outside a sensible percent range
    for name, value in (
        ("DANGER_MARGIN_THRESHOLD", DANGER_MARGIN_THRESHOLD),
        ("HEALTHY_MARGIN_THRESHOLD", HEALTHY_MARGIN_THRESHOLD),
    ):
        if not 0.0 <= value <= 100.0:
            issues.append({
                "level": "WARNING",
                "message": f"{name}={value} is outside 0-100; margin tiers will look odd.",
            })

    # 2. Unknown log format falls back to structured
    if LOG_FORMAT not in ("structured", "json"):
        issues.append({
            "level": "WARNING",
            "message": f"LOG_FORMAT={LOG_FORMAT!r} is not 'structured' or 'json'; using structured.",
        })

    # 3. Auth enabled but no tokens configured
    auth_enabled = os.environ.get("CM_API_AUTH_ENABLED", "true").lower() in ("true", "1", "yes")
    if auth_enabled and not os.environ.get("CM_API_API_TOKENS", ""):
        issues.append({
            "level": "WARNING",
            "message": (
                "Auth is enabled but CM_API_API_TOKENS is not set. "
                "Every authenticated request will be rejected with 401. "
                "Set via: export CM_API_API_TOKENS=<token>:<owner_id>"
            ),
        })

    return issues
