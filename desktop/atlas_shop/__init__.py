"""
Atlas Shop — Animated Model to Spritesheet Exporter

This is the top-level package for the Atlas Shop desktop application.
The app renders every sampled frame of a model's animation into a
grid-packed texture atlas, once with the model's own materials (diffuse)
and once with a normal-visualizing material (normal), and saves both
atlases as a single atlas.zip.

The version string below is the single source of truth for the app's
version number, referenced by pyproject.toml.
"""

__version__ = "0.1.0"
