"""Services shared across the engine."""
