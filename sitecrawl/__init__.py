"""Same-domain website crawler."""

__version__ = "0.1.0"
