"""Application layer - per-tab UI state and use cases."""
