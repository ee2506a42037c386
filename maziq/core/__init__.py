"""Core domain: models, engine, configuration and persistence."""
