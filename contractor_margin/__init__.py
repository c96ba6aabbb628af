"""contractor_margin: job profitability tracking for trade contractors."""

__version__ = "1.0.0"
