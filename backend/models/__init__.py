"""
Models package - SQLAlchemy models
"""
from models.database import db
from models.tender_project import TenderProject

__all__ = [
    'db',
    'TenderProject',
]
