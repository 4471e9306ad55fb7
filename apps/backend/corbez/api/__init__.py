"""Aplicación FastAPI (entrypoint, handlers de excepciones)."""
