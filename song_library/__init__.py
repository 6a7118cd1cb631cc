"""
Song Library - Song catalogue service.

A FastAPI service that stores songs in SQLite and fills in release date,
lyrics and link for each new song from an external music info provider.
"""
