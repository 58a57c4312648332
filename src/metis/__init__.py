"""Run a command whenever a watched file is modified."""

__version__ = "0.1.0"
