"""Adaptadores de infraestructura (PostgreSQL, in-memory)."""
