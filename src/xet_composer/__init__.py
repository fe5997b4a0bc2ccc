"""xet-composer - render, compile and archive smart-contract templates."""

__version__ = "0.1.0"
