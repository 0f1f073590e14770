"""
Shotmark - screenshot capture and annotation tool for Linux desktops.

This package contains the main application modules:
- core: Application core, capture providers and error types
- editor: Annotation engine (geometry, rasterizer, effects, history, controller)
  and the Qt canvas that drives it
- services: Application services (config, logging, image codec, clipboard)
- ui: Top-level windows
"""

__version__ = "0.2.0"
