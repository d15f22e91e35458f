#teamboard/models/base.py
"""
Declarative base for every ORM model in the project.

    from teamboard.models.base import Base
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
