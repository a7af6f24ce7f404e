"""Customer storage access."""
