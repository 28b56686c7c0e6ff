"""
Brand OS - multi-tenant brand management core
"""

__version__ = "0.1.0"
