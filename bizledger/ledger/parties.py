"""
Party Aggregator

Turns the flat transaction log into one net position per counterparty
(the "baki khata"). Pure functions, no stored state.

NOTE: Receivable/payable totals include SETTLED dues. This is the
ledger-of-record view; calculate_balance() is cash on hand.
"""

from decimal import Decimal
from typing import Iterable

from bizledger.models.ledger import PartySummary, Transaction, TransactionType


def aggregate_parties(transactions: Iterable[Transaction]) -> list[PartySummary]:
    """
    Build one PartySummary per trimmed party name.

    - Transactions without a party name never produce a summary
    - Only dues add to receivable (income) or payable (expense),
      settled or not
    - lastTransactionDate covers every transaction naming the party
    - Most recently active party first; ties keep encounter order
    """
    groups: dict[str, dict] = {}

    for tx in transactions:
        name = (tx.party_name or "").strip()
        if not name:
            continue

        group = groups.get(name)
        if group is None:
            group = {
                "receivable": Decimal("0"),
                "payable": Decimal("0"),
                "last_date": tx.date,
            }
            groups[name] = group

        if tx.is_due:
            if tx.type == TransactionType.INCOME:
                group["receivable"] += tx.amount
            else:
                group["payable"] += tx.amount

        if tx.date > group["last_date"]:
            group["last_date"] = tx.date

    summaries = [
        PartySummary(
            name=name,
            total_receivable=group["receivable"],
            total_payable=group["payable"],
            net_balance=group["receivable"] - group["payable"],
            last_transaction_date=group["last_date"],
        )
        for name, group in groups.items()
    ]

    # sorted() is stable, also with reverse=True
    return sorted(summaries, key=lambda p: p.last_transaction_date, reverse=True)


def search_parties(summaries: Iterable[PartySummary], text: str) -> list[PartySummary]:
    """Case-insensitive substring match on the party name."""
    needle = text.strip().lower()
    if not needle:
        return list(summaries)
    return [p for p in summaries if needle in p.name.lower()]


def party_transactions(
    transactions: Iterable[Transaction],
    name: str,
) -> list[Transaction]:
    """One party's statement, newest first by transaction date."""
    key = name.strip()
    matching = [t for t in transactions if (t.party_name or "").strip() == key]
    return sorted(matching, key=lambda t: (t.date, t.timestamp), reverse=True)

