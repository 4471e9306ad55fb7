"""Concerns transversales: config, logging, errores, métricas, middleware."""
