"""Infrastructure for Verum: stubs, adapters, observability and metrics."""
