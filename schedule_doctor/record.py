"""Typed shape of one extracted payment schedule.

Attributes are snake_case; ``to_dict`` emits the camelCase JSON handed to the
storage and dashboard collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, ClassVar, Optional


def camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json(value: Any) -> Any:
    if is_dataclass(value):
        omit_none = getattr(value, "omit_none", False)
        result = {}
        for item in fields(value):
            raw = getattr(value, item.name)
            if raw is None and omit_none:
                continue
            result[camel(item.name)] = to_json(raw)
        return result
    if isinstance(value, list):
        return [to_json(item) for item in value]
    return value


@dataclass
class ItemCounts:
    total: int = 0
    ams: int = 0
    mcr: int = 0
    nhs_pfs: int = 0
    cpus: int = 0
    other: int = 0


@dataclass
class Financials:
    gross_ingredient_cost: float = 0.0
    net_ingredient_cost: float = 0.0
    dispensing_pool: float = 0.0
    establishment_payment: float = 0.0
    pharmacy_first_base: float = 0.0
    pharmacy_first_activity: float = 0.0
    average_gross_value: float = 0.0
    supplementary_payments: float = 0.0


@dataclass
class AdvancePayments:
    previous_month: float = 0.0
    next_month: float = 0.0


@dataclass
class ServiceCosts:
    ams: float = 0.0
    mcr: float = 0.0
    nhs_pfs: float = 0.0
    cpus: float = 0.0
    other: float = 0.0


@dataclass
class PfsDetails:
    omit_none: ClassVar[bool] = True

    treatment_items: Optional[float] = None
    treatment_weighting: Optional[float] = None
    treatment_weighted_subtotal: Optional[float] = None
    consultations: Optional[float] = None
    consultation_weighting: Optional[float] = None
    consultations_weighted_subtotal: Optional[float] = None
    referrals: Optional[float] = None
    referral_weighting: Optional[float] = None
    referrals_weighted_subtotal: Optional[float] = None

    uti_treatment_items: Optional[float] = None
    uti_treatment_weighting: Optional[float] = None
    uti_treatment_weighted_subtotal: Optional[float] = None
    uti_consultations: Optional[float] = None
    uti_consultation_weighting: Optional[float] = None
    uti_consultations_weighted_subtotal: Optional[float] = None
    uti_referrals: Optional[float] = None
    uti_referral_weighting: Optional[float] = None
    uti_referrals_weighted_subtotal: Optional[float] = None

    impetigo_treatment_items: Optional[float] = None
    impetigo_treatment_weighting: Optional[float] = None
    impetigo_treatment_weighted_subtotal: Optional[float] = None
    impetigo_consultations: Optional[float] = None
    impetigo_consultation_weighting: Optional[float] = None
    impetigo_consultations_weighted_subtotal: Optional[float] = None
    impetigo_referrals: Optional[float] = None
    impetigo_referral_weighting: Optional[float] = None
    impetigo_referrals_weighted_subtotal: Optional[float] = None

    shingles_treatment_items: Optional[float] = None
    shingles_treatment_weighting: Optional[float] = None
    shingles_treatment_weighted_subtotal: Optional[float] = None
    shingles_consultations: Optional[float] = None
    shingles_consultation_weighting: Optional[float] = None
    shingles_consultations_weighted_subtotal: Optional[float] = None
    shingles_referrals: Optional[float] = None
    shingles_referral_weighting: Optional[float] = None
    shingles_referrals_weighted_subtotal: Optional[float] = None

    skin_infection_treatment_items: Optional[float] = None
    skin_infection_treatment_weighting: Optional[float] = None
    skin_infection_treatment_weighted_subtotal: Optional[float] = None
    skin_infection_consultations: Optional[float] = None
    skin_infection_consultation_weighting: Optional[float] = None
    skin_infection_consultations_weighted_subtotal: Optional[float] = None
    skin_infection_referrals: Optional[float] = None
    skin_infection_referral_weighting: Optional[float] = None
    skin_infection_referrals_weighted_subtotal: Optional[float] = None

    hayfever_treatment_items: Optional[float] = None
    hayfever_treatment_weighting: Optional[float] = None
    hayfever_treatment_weighted_subtotal: Optional[float] = None
    hayfever_consultations: Optional[float] = None
    hayfever_consultation_weighting: Optional[float] = None
    hayfever_consultations_weighted_subtotal: Optional[float] = None
    hayfever_referrals: Optional[float] = None
    hayfever_referral_weighting: Optional[float] = None
    hayfever_referrals_weighted_subtotal: Optional[float] = None

    weighted_activity_total: Optional[float] = None
    activity_specified_minimum: Optional[float] = None
    weighted_activity_above_minimum: Optional[float] = None
    national_activity_above_minimum: Optional[float] = None
    monthly_pool: Optional[float] = None
    applied_activity_fee: Optional[float] = None
    maximum_activity_fee: Optional[float] = None
    base_payment: Optional[float] = None
    activity_payment: Optional[float] = None
    total_payment: Optional[float] = None

    def weighted_subtotals(self) -> dict[str, float]:
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name.endswith("_weighted_subtotal") and getattr(self, item.name) is not None
        }


@dataclass
class RegionalPaymentDetail:
    description: str
    amount: float


@dataclass
class RegionalPayments:
    total_amount: float = 0.0
    payment_details: list[RegionalPaymentDetail] = field(default_factory=list)


@dataclass
class HighValueItem:
    omit_none: ClassVar[bool] = True

    paid_product_name: str
    paid_gic_incl_bb: float
    paid_quantity: Optional[float] = None
    service_flag: Optional[str] = None


@dataclass
class PaymentRecord:
    contractor_code: str = ""
    month: str = ""
    year: int = 0
    dispensing_month: str = ""
    net_payment: float = 0.0
    item_counts: ItemCounts = field(default_factory=ItemCounts)
    financials: Financials = field(default_factory=Financials)
    advance_payments: AdvancePayments = field(default_factory=AdvancePayments)
    service_costs: ServiceCosts = field(default_factory=ServiceCosts)
    pfs_details: Optional[PfsDetails] = None
    regional_payments: Optional[RegionalPayments] = None
    high_value_items: list[HighValueItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_json(self)
