"""bpm - a binary package manager for release artifacts."""

__version__ = "0.4.0"
