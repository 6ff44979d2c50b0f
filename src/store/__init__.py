"""Storage layer.

This module persists catalog anchors, append-only version and state
rows, and the transaction boundary every catalog mutation runs in.
"""
