"""
Core module - configuration, security, auth and database utilities
"""
