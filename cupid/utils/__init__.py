"""Utilities package for the Cupid match engine."""
