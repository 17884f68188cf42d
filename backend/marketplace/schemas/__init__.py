"""Pydantic schemas for API boundaries."""
