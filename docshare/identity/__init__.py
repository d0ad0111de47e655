"""Identidad y autorización: Actor, motor de decisión por políticas y RBAC por roles."""
