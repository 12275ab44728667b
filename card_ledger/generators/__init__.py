"""Identifier generators used at card issuance."""

from card_ledger.generators.base import BaseGenerator
from card_ledger.generators.card_number import CARD_NUMBER_LENGTH, CardNumberGenerator

__all__ = ["BaseGenerator", "CARD_NUMBER_LENGTH", "CardNumberGenerator"]
