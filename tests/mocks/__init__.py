"""Test doubles for the Cupid match engine."""
