"""
ParcelFlow Backend — Abstract Payment Gateway Interface
=========================================================

What:  Contract for creating card-payment intents with an external processor.
Who:   Called by PaymentService.create_payment_intent().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PaymentIntent:
    client_secret: str
    amount: int  # minor units
    currency: str
    id: Optional[str] = None


class PaymentGateway(ABC):
    """
    Contract:
        - amounts are passed in minor currency units (already converted)
        - any processor or transport failure raises PaymentGatewayError
        - implementations do not retry; the client decides
    """

    @abstractmethod
    async def create_payment_intent(self, amount: int) -> PaymentIntent:
        ...
