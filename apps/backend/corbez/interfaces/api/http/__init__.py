"""Routers, schemas y mapeo de errores HTTP."""
