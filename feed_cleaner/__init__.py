"""Feed Cleaner: hides low-value items in an infinitely scrolling feed."""

__version__ = "0.1.0"
