"""
Schemas module - Request/Response schemas for API endpoints.

Services return normalized dicts; routes validate them against these schemas,
which also strips internal fields such as password_hash.
"""
