import random
import unittest
from decimal import Decimal

from ticketpos.db.models import Product
from ticketpos.sales.cart import Cart

ADULT = Product(1, "Adult", Decimal("10.00"))
CHILD = Product(2, "Child", Decimal("5.00"))
SENIOR = Product(3, "Senior", Decimal("7.50"))


class CartTestCase(unittest.TestCase):
    def test_add_merges_lines_by_product(self):
        cart = Cart().add(ADULT).add(CHILD).add(ADULT)
        self.assertEqual(len(cart), 2)
        self.assertEqual(cart.quantity_of(ADULT.id), 2)
        self.assertEqual(cart.quantity_of(CHILD.id), 1)
        self.assertEqual([line.product.id for line in cart], [ADULT.id, CHILD.id])
        self.assertEqual(cart.total(), Decimal("25.00"))
        self.assertEqual(cart.item_count(), 3)

    def test_operations_return_new_carts(self):
        empty = Cart()
        one = empty.add(ADULT)
        self.assertTrue(empty.is_empty)
        self.assertEqual(one.quantity_of(ADULT.id), 1)
        one.update_quantity(ADULT.id, 5)
        self.assertEqual(one.quantity_of(ADULT.id), 1)

    def test_update_quantity(self):
        cart = Cart().add(ADULT).add(CHILD)
        cart = cart.update_quantity(ADULT.id, 4)
        self.assertEqual(cart.quantity_of(ADULT.id), 4)
        self.assertEqual(cart.total(), Decimal("45.00"))

        # zero or negative drops the line
        self.assertEqual(cart.update_quantity(ADULT.id, 0).quantity_of(ADULT.id), 0)
        self.assertEqual(len(cart.update_quantity(CHILD.id, -2)), 1)

        # unknown product is a no-op
        self.assertEqual(cart.update_quantity(99, 3), cart)

    def test_remove_and_clear(self):
        cart = Cart().add(ADULT).add(CHILD)
        self.assertEqual([line.product.id for line in cart.remove(ADULT.id)], [CHILD.id])
        self.assertEqual(cart.remove(99), cart)
        self.assertTrue(cart.clear().is_empty)
        self.assertEqual(cart.clear().total(), Decimal("0"))

    def test_refresh_products_follows_price_edits(self):
        cart = Cart().add(ADULT).add(CHILD)
        repriced = Product(ADULT.id, "Adult", Decimal("12.00"))
        cart = cart.refresh_products([repriced])
        self.assertEqual(len(cart), 1)
        self.assertEqual(cart.total(), Decimal("12.00"))

    def test_snapshot(self):
        cart = Cart().add(ADULT).add(ADULT).add(CHILD)
        lines = cart.snapshot()
        self.assertEqual([(l.product_id, l.product_name, l.unit_price, l.quantity) for l in lines],
                         [(1, "Adult", Decimal("10.00"), 2), (2, "Child", Decimal("5.00"), 1)])
        self.assertEqual(sum(l.subtotal for l in lines), cart.total())

    def test_random_edits_keep_invariants(self):
        rng = random.Random(20240501)
        products = [ADULT, CHILD, SENIOR]
        cart = Cart()
        for _ in range(500):
            product = rng.choice(products)
            op = rng.randrange(4)
            if op == 0:
                cart = cart.add(product)
            elif op == 1:
                cart = cart.update_quantity(product.id, rng.randint(-2, 6))
            elif op == 2:
                cart = cart.remove(product.id)
            elif rng.random() < 0.05:
                cart = cart.clear()

            ids = [line.product.id for line in cart]
            self.assertEqual(len(ids), len(set(ids)))
            self.assertTrue(all(line.quantity >= 1 for line in cart))
            self.assertEqual(
                cart.total(),
                sum((line.product.price * line.quantity for line in cart), Decimal("0")),
            )
            self.assertEqual(cart.item_count(), sum(line.quantity for line in cart))


if __name__ == "__main__":
    unittest.main()
