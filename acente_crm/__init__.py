"""Insurance agency CRM: policy export import and reconciliation."""

__version__ = "0.1.0"
