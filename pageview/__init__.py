"""Page model, plugin registry, threaded renderer with page cache, recolouring and marks for a document viewer."""

__version__ = "0.1.0"
__all__ = ["marks", "page", "plugin", "recolor", "render", "surface"]