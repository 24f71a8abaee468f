from __future__ import annotations

import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from schedule_doctor.record import Financials, PaymentRecord, RegionalPaymentDetail, RegionalPayments
from schedule_doctor.variance import explain_payment_variance


def make_record(net_payment, net_ingredient_cost, supplementary, regional=None) -> PaymentRecord:
    record = PaymentRecord(net_payment=net_payment)
    record.financials = Financials(net_ingredient_cost=net_ingredient_cost, supplementary_payments=supplementary)
    if regional is not None:
        record.regional_payments = RegionalPayments(
            total_amount=sum(regional.values()),
            payment_details=[RegionalPaymentDetail(description=name, amount=amount) for name, amount in regional.items()],
        )
    return record


class PaymentVarianceTests(unittest.TestCase):
    def test_missing_record_returns_none(self):
        self.assertIsNone(explain_payment_variance(None, make_record(1, 1, 1)))
        self.assertIsNone(explain_payment_variance(make_record(1, 1, 1), None))

    def test_components_are_ranked_by_contribution(self):
        previous = make_record(10000, 8000, 500, {"Care Home Service": 250, "Smoking Cessation": 300})
        current = make_record(11000, 8750, 650, {"Care Home Service": 250, "Smoking Cessation": 400})
        variance = explain_payment_variance(current, previous)

        self.assertEqual(variance["totalDifference"], 1000)
        self.assertAlmostEqual(variance["percentChange"], 10.0)
        self.assertEqual([item["name"] for item in variance["components"]], [
            "Net Ingredient Cost",
            "Supplementary Payments",
            "Regional Payments",
        ])
        self.assertAlmostEqual(variance["primaryFactor"]["contribution"], 75.0)
        self.assertEqual(variance["primaryFactor"]["name"], "Net Ingredient Cost")

    def test_regional_details_keep_significant_and_new_lines(self):
        previous = make_record(10000, 8000, 500, {"Care Home Service": 250, "Smoking Cessation": 300, "Flu": 50})
        current = make_record(10500, 8000, 500, {"Care Home Service": 280, "Smoking Cessation": 650, "Gluten Free": 20})
        variance = explain_payment_variance(current, previous)

        details = {item["description"]: item for item in variance["regionalPaymentDetails"]}
        self.assertEqual(set(details), {"Smoking Cessation", "Flu", "Gluten Free"})
        self.assertEqual(details["Smoking Cessation"]["difference"], 350)
        self.assertEqual(details["Flu"]["current"], 0.0)
        self.assertEqual(variance["regionalPaymentDetails"][0]["description"], "Smoking Cessation")

    def test_regional_component_needs_both_months(self):
        previous = make_record(10000, 8000, 500)
        current = make_record(10200, 8100, 600, {"Care Home Service": 250})
        variance = explain_payment_variance(current, previous)
        self.assertNotIn("Regional Payments", [item["name"] for item in variance["components"]])
        self.assertEqual(variance["regionalPaymentDetails"], [])

    def test_zero_previous_and_zero_difference_do_not_divide_by_zero(self):
        variance = explain_payment_variance(make_record(0, 0, 0), make_record(0, 0, 0))
        self.assertEqual(variance["percentChange"], 0.0)
        self.assertTrue(all(item["contribution"] == 0.0 for item in variance["components"]))


if __name__ == "__main__":
    unittest.main()
