"""Interactive bacteria/phage cluster tree explorer."""

__version__ = "0.3.0"
