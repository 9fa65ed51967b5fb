"""Cupid: interaction, match and moderation engine."""

__version__ = "1.0.0"
