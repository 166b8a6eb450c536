"""
Alumni Registry Backend

Caching layer and diagnostics surface for the alumni credential registry.
"""

__version__ = "0.1.0"
