"""mdboard - sync markdown stories with GitHub Projects boards."""

__version__ = "0.1.0"
