"""
VelociView - activity statistics overlays for photos
"""

__version__ = "1.0.0"
