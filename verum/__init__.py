"""Verum protocol engine.

Chunks long-form content into chain-linked transaction payloads, publishes
them sequentially against an external sender, and reconstructs feeds,
stories and subscription state from unordered transaction snapshots.
"""

__version__ = "0.1.0"
