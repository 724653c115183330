from dataclasses import dataclass
from decimal import Decimal

from ..exceptions import UnknownCustomerError
from ..models import Customer, CustomerPrepayment
from .posting import to_amount

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class CreditEvaluation:
    credit_limit: Decimal
    current_outstanding: Decimal
    prepayment_balance: Decimal
    effective_outstanding: Decimal
    projected_outstanding: Decimal
    available_credit: Decimal
    exceeds_limit: bool

    def as_dict(self):
        return {
            "credit_limit": str(self.credit_limit),
            "current_outstanding": str(self.current_outstanding),
            "prepayment_balance": str(self.prepayment_balance),
            "effective_outstanding": str(self.effective_outstanding),
            "projected_outstanding": str(self.projected_outstanding),
            "available_credit": str(self.available_credit),
            "exceeds_limit": self.exceeds_limit,
        }


def evaluate_credit(customer_id, additional_amount=0):
    """
    Credit exposure net of the prepayment wallet. Read only: callers
    decide whether exceeding the limit blocks anything.
    """
    customer = Customer.objects.filter(pk=customer_id).first()
    if customer is None:
        raise UnknownCustomerError(f"Customer {customer_id} not found.")

    prepayment_balance = (
        CustomerPrepayment.objects.for_customer(customer_id).active().available_balance()
    )
    effective = max(ZERO, customer.outstanding_balance - prepayment_balance)
    projected = effective + to_amount(additional_amount)

    return CreditEvaluation(
        credit_limit=customer.credit_limit,
        current_outstanding=customer.outstanding_balance,
        prepayment_balance=prepayment_balance,
        effective_outstanding=effective,
        projected_outstanding=projected,
        available_credit=customer.available_credit,
        exceeds_limit=projected > customer.credit_limit,
    )
