"""Use cases — one function per CLI operation, no click imports."""
