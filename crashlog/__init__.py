"""Split Crash Log regions into records, decode record headers and build register trees."""

__version__ = "0.1.0"
__all__ = ["header", "metadata", "node", "record", "region"]