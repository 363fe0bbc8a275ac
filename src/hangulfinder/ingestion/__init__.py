"""Document providers."""
