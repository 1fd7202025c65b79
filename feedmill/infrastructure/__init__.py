"""Infrastructure layer - storage adapters."""
