"""tldrpy: tldr pages client with a verified local cache."""

__version__ = "0.4.0"
