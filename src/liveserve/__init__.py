"""Live-reloading development server with in-page developer overlays."""

__version__ = "0.1.0"
