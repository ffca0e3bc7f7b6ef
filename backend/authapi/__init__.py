"""Expose the application factory at package level.

``from authapi import create_app`` builds a configured Flask app.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
