"""Explain what moved a pharmacy's net payment between two months."""

from __future__ import annotations

from typing import Any, Optional

from schedule_doctor.record import PaymentRecord

SIGNIFICANT_REGIONAL_CHANGE = 100


def contribution(difference: float, total_difference: float) -> float:
    return (difference / total_difference) * 100 if total_difference != 0 else 0.0


def component(name: str, previous: float, current: float, total_difference: float) -> dict[str, Any]:
    difference = current - previous
    return {
        "name": name,
        "previous": previous,
        "current": current,
        "difference": difference,
        "contribution": contribution(difference, total_difference),
    }


def regional_payment_changes(
    current: PaymentRecord,
    previous: PaymentRecord,
    total_difference: float,
) -> list[dict[str, Any]]:
    previous_amounts: dict[str, float] = {}
    current_amounts: dict[str, float] = {}
    for item in previous.regional_payments.payment_details:
        previous_amounts.setdefault(item.description, item.amount)
    for item in current.regional_payments.payment_details:
        current_amounts.setdefault(item.description, item.amount)

    descriptions = list(dict.fromkeys([*previous_amounts, *current_amounts]))
    changes = []
    for description in descriptions:
        before = previous_amounts.get(description, 0.0)
        after = current_amounts.get(description, 0.0)
        difference = after - before
        appeared = before == 0 and after > 0
        disappeared = before > 0 and after == 0
        if abs(difference) > SIGNIFICANT_REGIONAL_CHANGE or appeared or disappeared:
            changes.append({
                "description": description,
                "previous": before,
                "current": after,
                "difference": difference,
                "contribution": contribution(difference, total_difference),
            })
    changes.sort(key=lambda item: abs(item["contribution"]), reverse=True)
    return changes


def explain_payment_variance(
    current: Optional[PaymentRecord],
    previous: Optional[PaymentRecord],
) -> Optional[dict[str, Any]]:
    """
    Break the month-on-month net payment change into its main drivers.

    Components are regional payments (when both months have them),
    supplementary payments and net ingredient cost, each with its share of the
    total difference. ``primaryFactor`` is the component with the largest
    absolute share.
    """
    if current is None or previous is None:
        return None

    total_difference = current.net_payment - previous.net_payment
    percent_change = (total_difference / previous.net_payment) * 100 if previous.net_payment != 0 else 0.0

    components = []
    regional_details: list[dict[str, Any]] = []
    if current.regional_payments is not None and previous.regional_payments is not None:
        components.append(component(
            "Regional Payments",
            previous.regional_payments.total_amount,
            current.regional_payments.total_amount,
            total_difference,
        ))
        regional_details = regional_payment_changes(current, previous, total_difference)

    components.append(component(
        "Supplementary Payments",
        previous.financials.supplementary_payments,
        current.financials.supplementary_payments,
        total_difference,
    ))
    components.append(component(
        "Net Ingredient Cost",
        previous.financials.net_ingredient_cost,
        current.financials.net_ingredient_cost,
        total_difference,
    ))
    components.sort(key=lambda item: abs(item["contribution"]), reverse=True)

    return {
        "totalDifference": total_difference,
        "percentChange": percent_change,
        "components": components,
        "primaryFactor": components[0] if components else None,
        "regionalPaymentDetails": regional_details,
    }
