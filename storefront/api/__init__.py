"""HTTP adapter over the application services."""
