"""
ACDocs
Document management with role and group based access scoping
"""

__version__ = "1.0.0"
