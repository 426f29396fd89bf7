"""Command-line access to marktguru.at supermarket deals."""

__version__ = "0.1.0"
