"""
Use cases por bounded context:
  - discounts: resolución y administración de descuentos
  - coupons: ciclo de vida del cupón reclamado
  - passes: pase permanente del empleado
  - moderation: máquina de estados + apelaciones
"""
