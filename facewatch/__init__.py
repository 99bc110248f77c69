"""Face recognition service: identity matching, clustering and recognition notifications."""

__version__ = "0.1.0"
