"""Configuration loading — catalog, manifests, templates."""
