"""
Database extension and durable models.

The engine keeps its entities in memory (see ``portal.models.entities``);
the only table is the key-value substrate used by the persistence adapter.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
