"""Destination freshness checks."""

from verify.freshness import FreshnessResult, check_freshness

__all__ = ["FreshnessResult", "check_freshness"]
