"""Go-to-definition for macro-based C class conventions."""

__version__ = "0.1.0"
