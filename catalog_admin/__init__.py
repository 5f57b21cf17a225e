"""Product catalog editor with durable commits and cross-context change notifications."""

__version__ = "0.1.0"
