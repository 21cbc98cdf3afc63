"""
Erreurs métier du noyau fulfillment.

Toute erreur levée dans une unité de travail annule la transaction
englobante : rien n'est appliqué partiellement.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base de toutes les erreurs métier."""


class NotFound(ServiceError):
    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InsufficientStock(ServiceError):
    def __init__(self, product: str, available: int, requested: int):
        self.product = product
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product}. Available: {available}, Requested: {requested}"
        )


class InvariantViolation(ServiceError):
    pass


class TransactionConflict(ServiceError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Transaction aborted after {attempts} conflicting attempts")
