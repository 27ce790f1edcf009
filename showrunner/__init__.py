"""Tour management data layer: entity store, operations, and derived views."""

__version__ = "0.1.0"
