"""Cost attribution and filtering engine for the infrastructure cost dashboard."""

__version__ = "0.1.0"
