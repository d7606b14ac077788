"""Shared formatting helpers."""

from .display import format_banner, format_bytes, format_rate

__all__ = ["format_banner", "format_bytes", "format_rate"]
