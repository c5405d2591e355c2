import os
import tempfile
import unittest
from datetime import datetime
from decimal import Decimal

from ticketpos.db.models import SaleLine
from ticketpos.sales.errors import ReceiptError
from ticketpos.sales.receipts import (
    PAGE_BREAK,
    RECEIPT_WIDTH,
    FilePrinter,
    generate_receipts,
    render_batch,
    render_receipt,
)

NOW = datetime(2024, 5, 1, 10, 30)
LINES = (
    SaleLine(1, "Adult", Decimal("10.00"), 2),
    SaleLine(2, "Child", Decimal("5.00"), 1),
)


class ReceiptsTestCase(unittest.TestCase):
    def setUp(self):
        self.units = generate_receipts(LINES, "Sam Seller", "cash", Decimal("25.00"), now=NOW)

    def test_one_receipt_per_unit(self):
        self.assertEqual(len(self.units), 3)
        self.assertEqual(
            [(u.product_name, u.unit_index, u.units_in_line) for u in self.units],
            [("Adult", 1, 2), ("Adult", 2, 2), ("Child", 1, 1)],
        )
        self.assertEqual([u.sequence for u in self.units], [1, 2, 3])
        self.assertTrue(all(u.sequence_total == 3 for u in self.units))
        self.assertTrue(all(u.sale_total == Decimal("25.00") for u in self.units))
        self.assertEqual(generate_receipts((), "Sam", "cash", Decimal("0")), ())

    def test_render_receipt(self):
        text = render_receipt(self.units[1], company_name="CITY ZOO", currency="$")
        self.assertIn("CITY ZOO", text)
        self.assertIn("SALES TICKET", text)
        self.assertIn("Seller: Sam Seller", text)
        self.assertIn("Ticket 2 of 3", text)
        self.assertIn("Unit: 2 of 2", text)
        self.assertIn("Price: $10.00", text)
        self.assertIn("Payment: Cash", text)
        self.assertIn("Sale total: $25.00", text)
        self.assertIn("2024-05-01 10:30", text)
        self.assertTrue(all(len(row) <= RECEIPT_WIDTH for row in text.splitlines()))

    def test_render_batch_separates_pages(self):
        batch = render_batch(self.units)
        self.assertEqual(batch.count(PAGE_BREAK), 2)
        self.assertEqual(render_batch([]), "")

    def test_file_printer(self):
        with tempfile.TemporaryDirectory() as tmp:
            printer = FilePrinter(os.path.join(tmp, "receipts"))
            path = printer.print_batch(7, self.units)
            self.assertEqual(os.path.basename(path), "sale-7-20240501-103000.txt")
            with open(path, encoding="utf-8") as f:
                self.assertEqual(f.read(), render_batch(self.units))

            with self.assertRaises(ReceiptError):
                printer.print_batch(8, ())

            # a regular file where the directory should be
            blocker = os.path.join(tmp, "blocked")
            with open(blocker, "w") as f:
                f.write("")
            with self.assertRaises(ReceiptError):
                FilePrinter(blocker).print_batch(9, self.units)


if __name__ == "__main__":
    unittest.main()
