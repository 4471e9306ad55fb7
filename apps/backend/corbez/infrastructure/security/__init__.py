"""Firma HMAC de tokens (cupones y pases)."""

from .token_signer import SIGNATURE_LENGTH, HmacTokenSigner, canonical_json

__all__ = ["HmacTokenSigner", "SIGNATURE_LENGTH", "canonical_json"]
