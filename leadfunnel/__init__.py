"""Lead capture API for the agency marketing site."""

__version__ = "1.0.0"
