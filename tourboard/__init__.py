"""
Split-flap board rendering package.

This package provides:
- Text-to-symbol encoding for the 6x22 Vestaboard alphabet
- Line, header and grid layout with defensive grid sanitizing
- Rate-limited dispatch to the board's Read/Write endpoint
- A persistent cache of the last rendered content per identity
"""

__version__ = "0.1.0"
