"""Exceptions raised by the outer layers (service, storage, CLI).

The scheduling core itself never raises on well-typed input.
"""


class CadenceError(Exception):
    """Base class for cadence errors surfaced to the user."""


class CardNotFoundError(CadenceError):
    def __init__(self, card_id: str):
        super().__init__(f"Unknown card: {card_id}")
        self.card_id = card_id


class StoreError(CadenceError):
    """The card store could not be read or written."""
