"""
===============================================================================
TARJETA CRC — infrastructure/security/token_signer.py
===============================================================================

Módulo:
    Firmado HMAC de tokens (cupones y pases de empleado)

Responsabilidades:
    - Serializar payloads de forma canónica (JSON, claves ordenadas, sin None).
    - Firmar con HMAC-SHA256 (hex recortado a 16 chars para QR compactos).
    - Verificar en tiempo constante contra el secreto actual y los previos
      (rotación sin invalidar tokens vigentes).

Colaboradores:
    - crosscutting.config.Settings.get_verification_secrets
    - domain.tokens (forma de los payloads)
    - application/usecases/coupons, passes (consumen el puerto TokenSigner)

Decisiones de seguridad:
    - Se firma SOLO con el secreto actual; verificar acepta la lista completa.
    - Nunca se loguean firmas ni secretos (ver _Redactor del logger).
===============================================================================
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Mapping, Sequence

SIGNATURE_LENGTH = 16


def canonical_json(payload: Mapping[str, Any]) -> str:
    """Serialización canónica: claves ordenadas, separadores compactos, sin None."""
    cleaned = {k: v for k, v in payload.items() if v is not None}
    return json.dumps(
        cleaned, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


class HmacTokenSigner:
    """Implementación HMAC-SHA256 del puerto TokenSigner."""

    def __init__(self, secrets_list: Sequence[str]) -> None:
        keys = [s for s in secrets_list if s]
        if not keys:
            raise ValueError("at least one signing secret is required")
        self._keys = [k.encode("utf-8") for k in keys]

    def _digest(self, key: bytes, payload: Mapping[str, Any]) -> str:
        message = canonical_json(payload).encode("utf-8")
        return hmac.new(key, message, hashlib.sha256).hexdigest()[:SIGNATURE_LENGTH]

    def sign(self, payload: Mapping[str, Any]) -> str:
        return self._digest(self._keys[0], payload)

    def verify(self, payload: Mapping[str, Any], signature: str) -> bool:
        if not signature or len(signature) != SIGNATURE_LENGTH:
            return False
        presented = signature.encode("utf-8")
        # R: Se evalúan todas las claves (sin early-return) para no filtrar cuál matcheó.
        matched = False
        for key in self._keys:
            expected = self._digest(key, payload).encode("utf-8")
            if hmac.compare_digest(presented, expected):
                matched = True
        return matched
