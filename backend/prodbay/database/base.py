# backend/prodbay/database/base.py
"""
SQLAlchemy declarative base shared by every ProdBay model.
"""

from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()
