"""Service layer: use cases orchestrated over units of work.

Import concrete services from their subpackages, e.g.
``from authapi.services.auth.service import AuthService``.
"""
