import asyncio
import os
import sqlite3
from unittest import mock

from helpers import TempDatabaseCase

from ticketpos.db import crud
from ticketpos.db import database as db_database
from ticketpos.main import TicketPosApp
from ticketpos.sales import register
from ticketpos.sales.cart import Cart
from ticketpos.sales.receipts import FilePrinter
from ticketpos.views.modal_checkout import CheckoutModal
from ticketpos.views.scr_sales import SalesScreen


class AppTestCase(TempDatabaseCase):
    async def asyncSetUp(self):
        self.seller = await self.make_seller()
        self.adult = await self.make_product("Adult", "10.00")
        self.box = await register.open_register(self.seller.id)
        self.receipts_dir = os.path.join(self.temp_dir.name, "receipts")
        self.app = TicketPosApp(printer=FilePrinter(self.receipts_dir))

    async def start_session(self, pilot):
        """Skip the login form: put the seller in state and leave the login screen."""
        await pilot.pause(0.2)
        self.app.state = self.app.state.logged_in(self.seller, self.box)
        await self.app.screen.dismiss()
        await pilot.pause(0.3)
        self.assertIsInstance(self.app.screen, SalesScreen)

    @staticmethod
    def messages(notify):
        return [str(c.args[0]) if c.args else str(c.kwargs.get("message")) for c in notify.call_args_list]

    async def test_escape_while_saving_does_not_cancel_the_sale(self):
        original_add_sale = crud.add_sale

        async def slow_add_sale(*args, **kwargs):
            await asyncio.sleep(0.5)
            return await original_add_sale(*args, **kwargs)

        async with self.app.run_test() as pilot:
            await self.start_session(pilot)
            self.app.state = self.app.state.with_cart(Cart().add(self.adult).add(self.adult))

            with mock.patch.object(crud, "add_sale", slow_add_sale), mock.patch.object(
                self.app, "notify"
            ) as notify:
                self.app.push_screen(CheckoutModal())
                await pilot.pause(0.2)
                await pilot.press("enter")  # Confirm Sale has focus
                await pilot.pause(0.1)
                await pilot.press("escape")
                await pilot.pause(0.1)
                # still open while the sale is being written
                self.assertIsInstance(self.app.screen, CheckoutModal)

                await pilot.pause(1.0)
                self.assertNotIsInstance(self.app.screen, CheckoutModal)
                self.assertTrue(self.app.state.cart.is_empty)
                self.assertTrue(any("recorded" in m for m in self.messages(notify)))

        sales = await crud.list_sales()
        self.assertEqual(len(sales), 1)
        self.assertEqual(sales[0].lines[0].quantity, 2)
        self.assertEqual(len(os.listdir(self.receipts_dir)), 1)

    async def test_go_back_before_submit_keeps_cart(self):
        async with self.app.run_test() as pilot:
            await self.start_session(pilot)
            self.app.state = self.app.state.with_cart(Cart().add(self.adult))
            self.app.push_screen(CheckoutModal())
            await pilot.pause(0.2)
            await pilot.press("escape")
            await pilot.pause(0.2)
            self.assertNotIsInstance(self.app.screen, CheckoutModal)
            self.assertEqual(self.app.state.cart.item_count(), 1)
        self.assertEqual(await crud.list_sales(), [])

    async def test_closing_a_missing_register_does_not_report_success(self):
        async with self.app.run_test() as pilot:
            await self.start_session(pilot)
            async with db_database.connect() as conn:
                await conn.execute("DELETE FROM cash_boxes WHERE id = ?;", (self.box.id,))
                await conn.commit()

            with mock.patch.object(self.app, "notify") as notify:
                await pilot.press("p")
                await pilot.pause(0.3)
                await pilot.press("enter")  # confirm closing
                await pilot.pause(0.3)

            self.assertIsNone(self.app.state.cash_box)
            messages = self.messages(notify)
            self.assertTrue(any("does not exist" in m for m in messages))
            self.assertFalse(any(m.endswith("closed.") for m in messages))

    async def test_store_check_drives_online_flag(self):
        async with self.app.run_test() as pilot:
            await self.start_session(pilot)

            failing = mock.AsyncMock(side_effect=sqlite3.OperationalError("disk I/O error"))
            with mock.patch.object(crud, "update_settings", failing), mock.patch.object(
                self.app, "notify"
            ) as notify:
                await self.app.check_store()
                await self.app.check_store()
            self.assertFalse(self.app.state.is_online)
            # reported once, not on every failed check
            self.assertEqual(notify.call_count, 1)

            before = self.app.state.last_sync
            await self.app.check_store()
            self.assertTrue(self.app.state.is_online)
            self.assertIsNotNone(self.app.state.last_sync)
            self.assertNotEqual(self.app.state.last_sync, before)
            self.assertEqual((await crud.get_settings()).last_sync, self.app.state.last_sync)
