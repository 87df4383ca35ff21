"""Stock Watch: personal stock-portfolio tracking."""

__version__ = "1.0.0"
