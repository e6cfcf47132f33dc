"""typegen — regenerate sources from XML type-system descriptors when they change."""

__version__ = "0.1.0"
