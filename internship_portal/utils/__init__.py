"""
Utility helpers - resume upload handling.
"""
