"""CLI command groups registered on the root ``maziq`` group."""
