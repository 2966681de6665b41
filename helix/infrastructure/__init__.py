"""Infrastructure adapters - persistence and external clients."""
