"""HTTP surface for the dealer query pipeline."""

__version__ = "0.1.0"
