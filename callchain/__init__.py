"""callchain: static caller-chain analysis for Java sources."""

__version__ = "0.1.0"
