"""
Studio Management API

Backend for photography studios sharing one deployment: tenant isolation,
role-based permissions, and session tokens for the admin and customer apps.
"""

__version__ = "1.0.0"
