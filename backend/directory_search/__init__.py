"""Search and geo-ranking backend for the dog services directory."""

__version__ = "0.1.0"
