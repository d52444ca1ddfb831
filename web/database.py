"""
Shared SQLAlchemy handle, kept apart from the app factory to avoid circular imports.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
