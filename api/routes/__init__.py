"""API route handlers."""

from api.routes import health, deposits, sweeps, chain

__all__ = ["health", "deposits", "sweeps", "chain"]
