"""Corbez: motor de perks para empleados (descuentos, cupones firmados, moderación)."""
