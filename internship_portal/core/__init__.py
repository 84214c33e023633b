"""
Core module - configuration, authentication, errors and logging.
"""
