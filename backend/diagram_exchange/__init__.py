"""Diagram exchange pipeline: envelope parsing, validation, repair and introspection of draw.io markup."""

__version__ = "0.1.0"
