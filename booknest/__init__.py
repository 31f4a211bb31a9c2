"""
BookNest: REST API for a book catalog.

This package provides:
- User signup and login with bcrypt password hashing
- JWT bearer tokens guarding the catalog endpoints
- Book create, list, update and delete backed by MongoDB
"""

__version__ = "1.0.0"
