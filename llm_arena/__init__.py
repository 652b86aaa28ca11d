"""LLM Arena: compare provider responses with pluggable judges and run two-party debates."""

__version__ = "0.3.0"
