import os
import tempfile
import unittest
from decimal import Decimal

from ticketpos.db import crud
from ticketpos.db import database as db_database
from ticketpos.utils import config


class TempDatabaseCase(unittest.IsolatedAsyncioTestCase):
    """Points the store at a fresh temporary file for every test."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False
        self._rounds = config.BCRYPT_ROUNDS
        config.BCRYPT_ROUNDS = 4

    def tearDown(self):
        config.BCRYPT_ROUNDS = self._rounds
        self.temp_dir.cleanup()

    async def make_seller(self, username="seller1", name="Sam Seller", password="pw"):
        return await crud.add_user(username, name, password, role="seller")

    async def make_product(self, name="Adult", price="10.00"):
        return await crud.add_product(name, Decimal(price))
