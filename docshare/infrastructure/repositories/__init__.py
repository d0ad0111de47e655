"""Implementaciones de los puertos de persistencia (in_memory / postgres)."""
