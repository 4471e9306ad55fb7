"""Adaptadores de entrada (HTTP)."""
