"""Configuration, model-key parsing and repository helpers for model-serving adapters."""

__version__ = "0.1.0"