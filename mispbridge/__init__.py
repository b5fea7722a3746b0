"""Building blocks for turning TheHive case messages into MISP attributes, objects and tags."""

__version__ = "0.1.0"