"""AI Studio image pipeline for the Kantamanto thrift marketplace."""

__version__ = "1.0.0"
