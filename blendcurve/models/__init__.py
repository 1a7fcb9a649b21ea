"""Database models."""

from blendcurve.models.audited_trade import AuditedTrade

__all__ = [
    "AuditedTrade",
]
