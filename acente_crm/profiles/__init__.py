"""Customer profile read model and synchronization."""
