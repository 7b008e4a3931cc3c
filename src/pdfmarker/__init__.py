"""Region-to-PDF compositing and page splitting."""

__version__ = "0.1.0"
