"""Ask-me-anything assistant grounded on a profile fact document."""

__version__ = "0.1.0"
