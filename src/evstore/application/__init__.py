"""Application layer – event sourcing, caching and messaging."""
