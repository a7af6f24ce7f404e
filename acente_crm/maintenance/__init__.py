"""Maintenance commands run outside the request path."""
