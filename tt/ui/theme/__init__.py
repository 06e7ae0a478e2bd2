"""Theme system: colors and stylesheet generation."""
from .colors import THEMES
from .stylesheet import build_stylesheet

__all__ = ["THEMES", "build_stylesheet"]
