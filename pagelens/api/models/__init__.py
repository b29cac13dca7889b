"""
Pydantic models for API response schemas.

They are separate from the internal pipeline types to keep a clear API boundary.
"""
