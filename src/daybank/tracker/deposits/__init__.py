"""Challenge deposits module.

A deposit confirms that day N of a challenge was funded with N units.
Deposits are upserted per (challenge, day) and removed by id.
"""

from .ledger import DepositLedger
from .models import Deposit
from .schemas import DepositResponse

__all__ = [
    "DepositLedger",
    "Deposit",
    "DepositResponse",
]
