"""Error hierarchy shared by every publish step."""

from __future__ import annotations


class PublishError(Exception):
    """Base class for failures surfaced by a publish call."""


__all__ = ["PublishError"]
