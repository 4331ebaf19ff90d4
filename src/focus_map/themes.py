"""
Palette definitions for Focus Map.

Provides the two interface palettes the palette automations switch
between.  Each palette defines colors for:
- Canvas background
- Edges
- Text drawn on the background (column / quadrant labels, separators)
- Node labels
- Button text and background (for the host toolbar)

Also defines the fixed node colors that do not belong to a palette.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class InterfacePalette:
    """Color palette for the interface around the nodes."""

    name: str

    # Canvas
    background: str

    # Links
    edges: str

    # Background layer text and separators
    text_on_background: str

    # Node labels
    text: str

    # Toolbar
    button_text: str
    button_bg: str


# Loud starting palette
INITIAL_PALETTE = InterfacePalette(
    name="initial",
    background="#EC0376",
    edges="#F3F805",
    text_on_background="#F3F805",
    text="#02D754",
    button_text="#F3F805",
    button_bg="#EC0376",
)


# Muted palette used once the graph has been "prettied up"
PRETTY_PALETTE = InterfacePalette(
    name="pretty",
    background="#262123",
    edges="#4C4646",
    text_on_background="#4C4646",
    text="#E8DED3",
    button_text="#4C4646",
    button_bg="#322C2E",
)


# Fixed node colors
DEFAULT_NODE_COLOR = "#E673C8"  # neither color column was filled in
DONE_COLOR = "#03BA6D"          # completed techniques under the reversed list


# Palette registry
PALETTES: dict[str, InterfacePalette] = {
    "initial": INITIAL_PALETTE,
    "pretty": PRETTY_PALETTE,
}


def get_palette(name: str) -> InterfacePalette:
    """Get an interface palette by name.

    Args:
        name: Palette name ("initial" or "pretty")

    Returns:
        InterfacePalette for the requested palette

    Raises:
        ValueError: If palette name is not recognized
    """
    if name not in PALETTES:
        valid = ", ".join(PALETTES.keys())
        raise ValueError(f"Unknown palette '{name}'. Valid palettes: {valid}")
    return PALETTES[name]
