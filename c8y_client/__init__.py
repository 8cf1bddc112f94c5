"""
Cumulocity client core.

Decodes managed objects with their custom fragments and mirrors group
hierarchies into in-memory asset trees.
"""

__version__ = "1.0.0"
