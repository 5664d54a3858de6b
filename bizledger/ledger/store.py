"""
Ledger Store

Owns each user's transaction collection and the cash-balance computation.

IMPORTANT: The store trusts its input. Business rules are checked by the
validator before anything gets here; the store only fails when storage
fails (PersistenceError) or when an update targets a missing id
(NotFoundError).
"""

from decimal import Decimal
from typing import Iterable, Optional

from bizledger.models.ledger import Transaction, TransactionInput
from bizledger.services.storage import (
    NotFoundError,
    TransactionStorageInterface,
)


def calculate_balance(transactions: Iterable[Transaction]) -> Decimal:
    """
    Cash on hand.

    An outstanding due contributes nothing: no cash has moved yet. Everything
    else, including settled dues, counts +amount for income and -amount for
    expense. No floor at zero.
    """
    balance = Decimal("0")
    for tx in transactions:
        if tx.is_outstanding_due:
            continue
        balance += tx.signed_amount
    return balance


def distinct_party_names(transactions: Iterable[Transaction]) -> list[str]:
    """Non-empty party names in first-seen order (for autocomplete)."""
    seen: dict[str, None] = {}
    for tx in transactions:
        if tx.party_name:
            seen.setdefault(tx.party_name, None)
    return list(seen)


class LedgerStore:
    """
    Create/update/delete/list transactions for a user.

    Every write is a read-modify-write of the user's whole collection
    through the storage repository.
    """

    def __init__(self, storage: TransactionStorageInterface):
        self._storage = storage

    def create(self, user_id: str, data: TransactionInput) -> Transaction:
        """
        Record a new transaction.

        The id and creation timestamp are assigned here; the caller only
        controls `date`. Repeated calls create independent records.
        """
        transaction = Transaction(
            **data.model_dump(include=set(TransactionInput.model_fields)),
            user_id=user_id,
            is_settled=False,
        )
        return self._storage.save_transaction(transaction)

    def get(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        return self._storage.get_transaction(user_id, transaction_id)

    def update(self, transaction: Transaction) -> Transaction:
        """
        Replace the stored record with the same id.

        Raises:
            NotFoundError: If the id is not in the user's collection
        """
        return self._storage.update_transaction(transaction)

    def settle(self, user_id: str, transaction_id: str) -> Transaction:
        """
        Mark a due as paid.

        From now on it counts toward the cash balance like any other
        transaction. Settling twice is harmless.

        Raises:
            NotFoundError: If the id is not in the user's collection
        """
        current = self._storage.get_transaction(user_id, transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        settled = current.model_copy(update={"is_settled": True})
        return self._storage.update_transaction(settled)

    def delete(self, user_id: str, transaction_id: str) -> bool:
        """Remove a transaction. Returns False when there was nothing to remove."""
        return self._storage.delete_transaction(user_id, transaction_id)

    def list_recent(self, user_id: str) -> list[Transaction]:
        """All of a user's transactions, newest first by creation timestamp."""
        return sorted(
            self._storage.list_transactions(user_id),
            key=lambda t: t.timestamp,
            reverse=True,
        )

    def replace_all(self, user_id: str, transactions: list[Transaction]) -> None:
        self._storage.replace_transactions(user_id, transactions)

    def calculate_balance(self, user_id: str) -> Decimal:
        return calculate_balance(self._storage.list_transactions(user_id))

    def get_parties(self, user_id: str) -> list[str]:
        return distinct_party_names(self._storage.list_transactions(user_id))

    # Defined last: the name shadows the builtin inside the class body
    def list(self, user_id: str) -> list[Transaction]:
        """All of a user's transactions, in stored order."""
        return self._storage.list_transactions(user_id)
