"""fastscan - Somewhat speedy full-connect scanner."""

__version__ = "1.0.0"
