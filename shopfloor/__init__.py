"""Shop-floor production recording, label rendering and reprint service."""

__version__ = "0.1.0"
