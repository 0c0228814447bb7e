"""Test-strategy selection and test-case synthesis for API operations."""

__version__ = "0.1.0"
