from decimal import Decimal

from django.test import SimpleTestCase

from ..exceptions import InvalidAmountError, InvalidLineItemError
from ..money import (fits_quantity_step, money_sum, multiply_money,
                     to_exact_money, to_money)
from ..services.totals import (LineItem, coerce_items, line_total,
                               quantities_by_item, receipt_total)


class MoneyTests(SimpleTestCase):
    def test_rounding_is_half_even(self):
        self.assertEqual(to_money("0.125"), Decimal("0.12"))
        self.assertEqual(to_money("0.135"), Decimal("0.14"))
        self.assertEqual(multiply_money("2.5", "0.05"), Decimal("0.12"))

    def test_floats_do_not_drift(self):
        # 0.1 + 0.2 in binary floating point is 0.30000000000000004
        self.assertEqual(money_sum([0.1, 0.2]), Decimal("0.30"))
        self.assertEqual(to_money(1.005), Decimal("1.00"))

    def test_non_numbers_are_rejected(self):
        for bad in ("abc", None, "NaN", "Infinity", True):
            with self.assertRaises(InvalidAmountError):
                to_money(bad)

    def test_exact_money_refuses_fractions_of_a_cent(self):
        self.assertEqual(to_exact_money("10.5"), Decimal("10.50"))
        with self.assertRaises(InvalidAmountError):
            to_exact_money("10.005")

    def test_quantity_step_is_four_places(self):
        self.assertTrue(fits_quantity_step(Decimal("7.3330")))
        self.assertTrue(fits_quantity_step(Decimal("1E+3")))
        self.assertFalse(fits_quantity_step(Decimal("0.00005")))


class ReceiptTotalerTests(SimpleTestCase):
    def item(self, qty, price, name="Rice"):
        return LineItem(item_name=name, quantity=Decimal(qty), unit="kg", unit_price=Decimal(price))

    def test_total_is_sum_of_rounded_line_totals(self):
        items = [self.item("1", "0.125"), self.item("1", "0.125", name="Dal")]
        # each line rounds to 0.12; rounding the raw sum 0.25 would give 0.25
        self.assertEqual(receipt_total(items), Decimal("0.24"))
        self.assertEqual(line_total(items[0]), Decimal("0.12"))

    def test_total_is_order_independent(self):
        items = [self.item("3", "19.99"), self.item("0.5", "7.333"), self.item("12", "1.005")]
        self.assertEqual(receipt_total(items), receipt_total(list(reversed(items))))
        self.assertEqual(
            receipt_total(items),
            sum((multiply_money(i.quantity, i.unit_price) for i in items), Decimal("0.00")),
        )

    def test_zero_unit_price_is_allowed(self):
        self.assertEqual(receipt_total([self.item("5", "0")]), Decimal("0.00"))

    def test_rejects_quantity_below_minimum(self):
        for qty in ("0", "-1", "0.005"):
            with self.assertRaises(InvalidLineItemError) as ctx:
                receipt_total([self.item("1", "1"), self.item(qty, "1")])
            self.assertEqual(ctx.exception.code, "invalid_line_item")
            self.assertEqual(ctx.exception.position, 1)

    def test_rejects_negative_unit_price(self):
        with self.assertRaises(InvalidLineItemError):
            receipt_total([self.item("1", "-0.01")])

    def test_rejects_blank_item_name(self):
        with self.assertRaises(InvalidLineItemError):
            receipt_total([self.item("1", "1", name="")])

    def test_client_total_is_ignored(self):
        items = coerce_items([
            {"item_name": " Rice ", "quantity": "2", "unit": "kg",
             "unit_price": "10", "total": "9999"},
        ])
        self.assertEqual(items[0].item_name, "Rice")
        self.assertEqual(receipt_total(items), Decimal("20.00"))

    def test_quantities_are_aggregated_per_item(self):
        items = [self.item("2", "1"), self.item("3", "1"), self.item("1", "1", name="Dal")]
        self.assertEqual(
            quantities_by_item(items), {"Rice": Decimal("5"), "Dal": Decimal("1")})

    def test_input_is_validated_before_any_rounding(self):
        # 0.00995 would round up to the 0.01 minimum at 4 places
        items = coerce_items([{"item_name": "Rice", "quantity": "0.00995", "unit_price": "1"}])
        self.assertEqual(items[0].quantity, Decimal("0.00995"))
        with self.assertRaises(InvalidLineItemError):
            receipt_total(items)

    def test_rejects_more_than_four_decimal_places(self):
        for qty, price in (("1000", "0.00005"), ("1.23456", "1")):
            with self.assertRaises(InvalidLineItemError) as ctx:
                receipt_total(coerce_items(
                    [{"item_name": "Rice", "quantity": qty, "unit_price": price}]))
            self.assertEqual(ctx.exception.position, 0)
        self.assertEqual(
            receipt_total(coerce_items(
                [{"item_name": "Rice", "quantity": "1000", "unit_price": "0.0005"}])),
            Decimal("0.50"),
        )
