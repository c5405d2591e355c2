import unittest
from datetime import datetime
from decimal import Decimal

from ticketpos.db.models import CashBox, Product, User
from ticketpos.utils.pure import format_money, generate_markdown_table, iso_timestamp
from ticketpos.utils.state import AppState

SELLER = User(1, "ana", "Ana", "x", "seller")
ADMIN = User(2, "root", "Root", "x", "admin")
BOX = CashBox(10, 1, datetime(2024, 5, 1, 9, 0))


class AppStateTestCase(unittest.TestCase):
    def test_login_flow(self):
        state = AppState()
        self.assertFalse(state.is_authenticated)
        self.assertFalse(state.can_sell)

        state = state.logged_in(SELLER)
        self.assertTrue(state.is_authenticated)
        self.assertFalse(state.is_admin)
        self.assertFalse(state.can_sell)

        state = state.register_opened(BOX)
        self.assertTrue(state.can_sell)
        self.assertFalse(state.register_closed().can_sell)

        self.assertTrue(AppState().logged_in(ADMIN).is_admin)

    def test_transitions_do_not_mutate(self):
        state = AppState().logged_in(SELLER, BOX)
        cart = state.cart.add(Product(1, "Adult", Decimal("10")))
        with_cart = state.with_cart(cart)
        self.assertTrue(state.cart.is_empty)
        self.assertEqual(with_cart.cart.item_count(), 1)

        out = with_cart.logged_out()
        self.assertIsNone(out.user)
        self.assertIsNone(out.cash_box)
        self.assertTrue(out.cart.is_empty)
        self.assertEqual(with_cart.user, SELLER)

    def test_flags(self):
        state = AppState()
        self.assertTrue(state.toggled_dark_mode().dark_mode)
        self.assertFalse(state.with_online(False).is_online)
        when = datetime(2024, 1, 1)
        self.assertEqual(state.synced(when).last_sync, when)
        self.assertIsNotNone(state.synced().last_sync)


class PureTestCase(unittest.TestCase):
    def test_format_money(self):
        self.assertEqual(format_money(Decimal("5"), "$"), "$5.00")
        self.assertEqual(format_money(Decimal("12.346"), "S/"), "S/12.35")

    def test_iso_timestamp_is_fixed_width(self):
        self.assertEqual(iso_timestamp(datetime(2024, 5, 1, 9, 0)), "2024-05-01T09:00:00.000000")
        self.assertIsNone(iso_timestamp(None))

    def test_markdown_table(self):
        table = generate_markdown_table(["A", "B"], [["x|y", 1]], ["l", "r"])
        self.assertEqual(table.splitlines(), ["| A | B |", "| :--- | ---: |", "| x\\|y | 1 |"])
        self.assertEqual(generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [["1", "2"]], ["l"])


if __name__ == "__main__":
    unittest.main()
