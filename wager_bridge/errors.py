"""
Conditions raised by the sessions and the channel.

None of them is fatal: every one leaves both sessions in a state from which
play can continue. They never cross the channel; only envelopes do.
"""
from decimal import Decimal
from typing import Optional


class WagerBridgeError(Exception):
    """Base class for every wager-bridge condition."""

    code = "WAGER_BRIDGE_ERROR"
    status_code = 400

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def as_dict(self) -> dict:
        return {"detail": self.detail, "condition": self.code}


class InvalidWager(WagerBridgeError):
    """Non-positive wager, or an amount the loaded item does not offer."""

    code = "INVALID_WAGER"
    status_code = 422

    def __init__(self, amount: Optional[Decimal] = None, detail: Optional[str] = None):
        self.amount = amount
        super().__init__(detail or f"invalid wager amount: {amount}")


class InsufficientBalance(WagerBridgeError):
    """A wager or selection needs more than the local mirror holds."""

    code = "INSUFFICIENT_BALANCE"
    status_code = 402

    def __init__(self, required: Decimal, balance: Decimal, detail: Optional[str] = None):
        self.required = required
        self.balance = balance
        super().__init__(detail or f"insufficient balance: required {required}, available {balance}")


class SessionBusy(WagerBridgeError):
    code = "SESSION_BUSY"
    status_code = 409


class InsufficientFunds(WagerBridgeError):
    """A peer-sent delta would drive the catalog mirror below zero."""

    code = "INSUFFICIENT_FUNDS"
    status_code = 409

    def __init__(self, delta: Decimal, balance: Decimal):
        self.delta = delta
        self.balance = balance
        super().__init__(f"insufficient funds: delta {delta} against balance {balance}")


class PeerUnauthenticated(WagerBridgeError):
    code = "PEER_UNAUTHENTICATED"
    status_code = 401

    def __init__(self, origin: Optional[str], expected: str):
        self.origin = origin
        self.expected = expected
        super().__init__(f"unexpected origin {origin!r}")


class CatalogUnavailable(WagerBridgeError):
    code = "CATALOG_UNAVAILABLE"
    status_code = 503


class ItemNotFound(WagerBridgeError):
    code = "ITEM_NOT_FOUND"
    status_code = 404

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"unknown item id {item_id}")


class TransportError(WagerBridgeError):
    """Raised by transports; the channel logs it and never re-raises."""

    code = "TRANSPORT_ERROR"
    status_code = 502
