"""Application layer: use cases, event dispatch and cache invalidation."""
