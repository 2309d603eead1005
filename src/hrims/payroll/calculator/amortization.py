from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ...core.exceptions import ValidationError


@dataclass(frozen=True)
class RepaymentSchedule:
    principal: float
    annual_rate: float
    months: int
    monthly_payment: float
    total_payment: float
    total_interest: float

    def to_dict(self) -> dict:
        return {
            "principal": self.principal,
            "annualRate": self.annual_rate,
            "months": self.months,
            "monthlyPayment": self.monthly_payment,
            "totalPayment": self.total_payment,
            "totalInterest": self.total_interest,
        }


def amortize(principal: float, annual_rate: float, months: int) -> RepaymentSchedule:
    """Fixed-installment repayment of ``principal`` over ``months``.

    ``annual_rate`` is a percentage (12 means 12% a year), compounded monthly.
    A zero rate spreads the principal evenly. All money values are rounded to
    2 decimals; ``total_payment`` is computed from the rounded installment.
    """

    if principal <= 0:
        raise ValidationError("Loan amount must be greater than zero")
    if months <= 0:
        raise ValidationError("Repayment period must be at least one month")
    if annual_rate < 0:
        raise ValidationError("Interest rate cannot be negative")

    r = annual_rate / 100 / 12
    if r == 0:
        monthly = principal / months
    else:
        growth = (1 + r) ** months
        monthly = principal * r * growth / (growth - 1)

    monthly = round(monthly, 2)
    total = round(monthly * months, 2)
    return RepaymentSchedule(
        principal=round(principal, 2),
        annual_rate=annual_rate,
        months=months,
        monthly_payment=monthly,
        total_payment=total,
        total_interest=round(total - principal, 2),
    )


@dataclass(frozen=True)
class Installment:
    number: int
    payment: float
    principal: float
    interest: float
    balance: float

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "payment": self.payment,
            "principal": self.principal,
            "interest": self.interest,
            "balance": self.balance,
        }


def installments(schedule: RepaymentSchedule) -> List[Installment]:
    """Month-by-month split of each payment into interest and principal.

    The last installment absorbs rounding so the balance ends at exactly 0.
    """

    r = schedule.annual_rate / 100 / 12
    balance = schedule.principal
    out: List[Installment] = []
    for n in range(1, schedule.months + 1):
        interest = round(balance * r, 2)
        if n == schedule.months:
            principal_part = round(balance, 2)
            payment = round(principal_part + interest, 2)
        else:
            payment = schedule.monthly_payment
            principal_part = round(payment - interest, 2)
        balance = round(balance - principal_part, 2)
        out.append(Installment(n, payment, principal_part, interest, max(balance, 0.0)))
    return out
