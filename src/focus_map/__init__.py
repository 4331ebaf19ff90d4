"""Focus Map — layout, interaction and mode engine for technique graphs."""

__version__ = "0.1.0"
