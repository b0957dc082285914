"""Voice connection management over a chat gateway, with audio input sources."""

__version__ = "0.1.0"