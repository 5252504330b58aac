"""SpotFinder: nearby carpark search with live availability and zone pricing."""

__version__ = "1.0.0"
