"""Domain layer - models and errors independent of transport and backend."""
