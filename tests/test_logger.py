import logging
import unittest

from rich.logging import RichHandler

from ticketpos.utils.logger import PACKAGE_LOGGER, NameColumnFormatter, get_logger


class LoggerTestCase(unittest.TestCase):
    def test_module_loggers_share_the_package_handler(self):
        crud_logger = get_logger("ticketpos.db.crud")
        get_logger("ticketpos.sales.processor")
        root = get_logger()

        self.assertEqual(root.name, PACKAGE_LOGGER)
        self.assertEqual(crud_logger.handlers, [])
        self.assertTrue(crud_logger.propagate)
        self.assertEqual(sum(isinstance(h, RichHandler) for h in root.handlers), 1)
        self.assertEqual(get_logger("__main__").name, "ticketpos.__main__")

    def test_formatter_pads_a_copy(self):
        formatter = NameColumnFormatter("[%(name)s] %(message)s", min_width=10)
        record = logging.LogRecord("short", logging.INFO, __file__, 1, "hi", None, None)
        self.assertEqual(formatter.format(record), "[  short   ] hi")
        self.assertEqual(record.name, "short")

        longer = logging.LogRecord("a.much.longer.name", logging.INFO, __file__, 1, "x", None, None)
        formatter.format(longer)
        self.assertEqual(formatter.width, len("a.much.longer.name"))


if __name__ == "__main__":
    unittest.main()
