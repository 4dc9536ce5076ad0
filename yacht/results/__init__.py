"""Result reporting."""

from .reporter import Reporter, colorize_diff

__all__ = ["Reporter", "colorize_diff"]
