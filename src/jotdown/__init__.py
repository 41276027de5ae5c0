"""Line-unit markdown editor engine."""

__all__ = [
    "adapters",
    "actions",
    "batch",
    "document",
    "keymaps",
    "persistence",
    "render",
    "reorder",
    "runtime",
    "selection",
    "session",
]

__version__ = "0.1.0"
