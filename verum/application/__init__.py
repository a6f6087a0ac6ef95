"""Application layer for Verum: ports and orchestrating services."""
