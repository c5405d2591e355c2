import unittest

from ticketpos.sales.errors import ShortcutError
from ticketpos.utils import shortcuts


class ShortcutsTestCase(unittest.TestCase):
    def test_validate_normalizes_keys(self):
        self.assertEqual(shortcuts.validate({"A": 1, "b": 2}), {"a": 1, "b": 2})
        self.assertEqual(shortcuts.validate({"1": 3}, product_ids=[3]), {"1": 3})

    def test_validate_rejects(self):
        bad = [
            {"x": 1},  # reserved
            {"P": 1},  # reserved, any case
            {"a": 1, "A": 2},  # same key twice
            {"ab": 1},
            {"": 1},
            {"a": 0},
            {"a": True},
            {"a": "1"},
        ]
        for mapping in bad:
            with self.assertRaises(ShortcutError, msg=mapping):
                shortcuts.validate(mapping)
        with self.assertRaises(ShortcutError):
            shortcuts.validate({"a": 5}, product_ids=[1, 2])

    def test_parse_legacy(self):
        entries = ["a:1:Adult", "B:2:Child", "x:3:Reserved", "junk", "c:abc:Bad", "a:4:Dup"]
        self.assertEqual(shortcuts.parse_legacy(entries), {"a": 1, "b": 2})

    def test_dumps_and_loads(self):
        text = shortcuts.dumps({"b": 2, "a": 1})
        self.assertEqual(text, '{"a": 1, "b": 2}')
        self.assertEqual(shortcuts.loads(text), {"a": 1, "b": 2})
        self.assertEqual(shortcuts.loads('["a:1:Adult"]'), {"a": 1})
        self.assertEqual(shortcuts.loads('{"a": 1, "x": 2, "c": "zz"}'), {"a": 1})
        for junk in (None, "", "not json", "42"):
            self.assertEqual(shortcuts.loads(junk), {})

    def test_product_for_key(self):
        mapping = {"a": 1}
        self.assertEqual(shortcuts.product_for_key(mapping, "A"), 1)
        self.assertIsNone(shortcuts.product_for_key(mapping, "b"))
        self.assertIsNone(shortcuts.product_for_key(mapping, ""))
        self.assertIsNone(shortcuts.product_for_key(mapping, "enter"))


if __name__ == "__main__":
    unittest.main()
