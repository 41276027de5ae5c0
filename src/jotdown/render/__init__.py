"""Markdown-subset rendering for individual line units."""

from .markdown import LineRenderer, RenderPass, default_passes, highlight_toggle, render_line

__all__ = [
    "LineRenderer",
    "RenderPass",
    "default_passes",
    "highlight_toggle",
    "render_line",
]
