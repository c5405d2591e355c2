from datetime import datetime, timedelta

from helpers import TempDatabaseCase

from ticketpos.db import crud
from ticketpos.db.models import CashBox
from ticketpos.sales import register
from ticketpos.sales.errors import RegisterError


class RegisterTestCase(TempDatabaseCase):
    async def asyncSetUp(self):
        self.seller = await self.make_seller()

    async def test_open_and_close(self):
        self.assertIsNone(await register.current_register(self.seller.id))

        opened_at = datetime(2024, 5, 1, 9, 0)
        box = await register.open_register(self.seller.id, now=opened_at)
        self.assertTrue(box.is_open)
        self.assertEqual(box.user_id, self.seller.id)
        self.assertEqual(box.opened_at, opened_at)
        self.assertEqual((await register.current_register(self.seller.id)).id, box.id)

        closed = await register.close_register(box, now=opened_at + timedelta(hours=8))
        self.assertFalse(closed.is_open)
        self.assertEqual(closed.closed_at, opened_at + timedelta(hours=8))
        self.assertIsNone(await register.current_register(self.seller.id))

    async def test_open_resumes_existing_box(self):
        first = await register.open_register(self.seller.id)
        again = await register.open_register(self.seller.id)
        self.assertEqual(again.id, first.id)
        self.assertEqual(len(await crud.list_cash_boxes(self.seller.id)), 1)

        # other users get their own box
        other = await crud.add_user("seller2", "Other", "pw")
        self.assertNotEqual((await register.open_register(other.id)).id, first.id)

    async def test_close_twice_is_a_no_op(self):
        box = await register.open_register(self.seller.id)
        first = await register.close_register(box, now=datetime(2024, 5, 1, 17, 0))
        second = await register.close_register(box, now=datetime(2024, 5, 1, 18, 0))
        self.assertEqual(second, first)
        self.assertEqual(second.closed_at, datetime(2024, 5, 1, 17, 0))

    async def test_reopen_creates_a_new_box(self):
        box = await register.open_register(self.seller.id)
        await register.close_register(box)
        new_box = await register.open_register(self.seller.id)
        self.assertNotEqual(new_box.id, box.id)
        self.assertFalse((await crud.get_cash_box(box.id)).is_open)

    async def test_close_unknown_box(self):
        ghost = CashBox(id=9999, user_id=self.seller.id, opened_at=datetime.now())
        with self.assertRaises(RegisterError):
            await register.close_register(ghost)
