"""Voice dialer: grammar-based command recognition for calling and launching apps."""

__version__ = "0.1.0"
