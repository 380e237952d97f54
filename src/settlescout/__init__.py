"""Resolve the best nearby settlement for batches of geographic points."""
