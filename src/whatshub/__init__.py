"""WhatsHub: a directory of community chat groups."""

__version__ = "0.1.0"

__all__ = ["__version__"]
