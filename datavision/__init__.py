"""In-memory tabular dataset registry and analytical query engine."""

__version__ = "1.0.0"
