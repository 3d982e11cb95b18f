# backend/prodbay/__init__.py
"""ProdBay - production project, supplier and quote management API."""

__version__ = "1.0.0"
__title__ = "ProdBay API"
__description__ = "Turn client briefs into quoted, supplier-assigned production assets"
