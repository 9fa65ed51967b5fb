"""HTTP surface for the Cupid match engine."""
