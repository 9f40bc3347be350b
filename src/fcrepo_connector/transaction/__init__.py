"""Repository transaction management."""

from .manager import (
    Propagation,
    TransactionManager,
    TransactionObject,
    TransactionStatus,
    describe_transaction_error,
)

__all__ = [
    "Propagation",
    "TransactionManager",
    "TransactionObject",
    "TransactionStatus",
    "describe_transaction_error",
]
