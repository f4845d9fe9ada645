"""
Finance Projects - Source Package

Project management for a personal-finance application: shared projects,
their currencies and their categories, stored in MongoDB.

DESIGN PRINCIPLES:
1. Access checks are part of every query
2. Fail early, fail visibly
3. No silent repairs of partially completed writes
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Projects Team"
