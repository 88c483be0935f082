"""camper - a command-line client for your Bandcamp collection."""

__version__ = "0.1.0"
