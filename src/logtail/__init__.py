"""logtail: poll a log source, drop duplicates, print what is new."""

__version__ = "0.1.0"
