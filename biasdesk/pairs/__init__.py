"""
Pair bias module for BiasDesk.

Handles weekly/daily bias, daily validity and bias history per pair.
"""

from biasdesk.pairs.expiry import ExpiryScheduler
from biasdesk.pairs.manager import PairManager
from biasdesk.pairs.tracker import PairField, is_valid

__all__ = ["ExpiryScheduler", "PairManager", "PairField", "is_valid"]
