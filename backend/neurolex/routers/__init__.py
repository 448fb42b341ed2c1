"""API routers."""

from neurolex.routers import health, stats, study, terms

__all__ = ["health", "stats", "study", "terms"]
