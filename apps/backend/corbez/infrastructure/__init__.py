"""Adaptadores de infraestructura (Postgres, Redis, RQ, HMAC)."""
