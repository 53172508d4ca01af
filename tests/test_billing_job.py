"""Tests for monthly bill generation."""

import re
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Insert

from edura.core.config import settings
from edura.core.permissions import Role
from edura.models.billing import BillingStatus, TuitionBilling
from edura.services.billing import (
    AGING_BUCKET_NAMES,
    aging_bucket,
    due_date_in_month,
    generate_monthly_bills,
    make_invoice_number,
)
from tests.conftest import create_class, create_user, enroll, local_time, test_session_maker


async def all_bills(db: AsyncSession) -> list[TuitionBilling]:
    result = await db.execute(select(TuitionBilling).order_by(TuitionBilling.student_id))
    return list(result.scalars().all())


class TestGenerateMonthlyBills:
    async def test_bills_billable_enrollment(
        self, db: AsyncSession, classroom, student_user
    ):
        """Positive rate and no bill yet: exactly one pending bill due on the 15th."""
        await enroll(db, student_user, classroom)

        result = await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))

        assert result.billing_month == "2024-06"
        assert result.created == 1
        assert result.skipped == 0

        bills = await all_bills(db)
        assert len(bills) == 1
        bill = bills[0]
        assert bill.student_id == student_user.id
        assert bill.class_id == classroom.id
        assert bill.amount == 500000
        assert bill.billing_month == "2024-06"
        assert bill.due_date == date(2024, 6, 15)
        assert bill.status == BillingStatus.PENDING
        assert re.fullmatch(r"INV-202406-[0-9A-F]{8}", bill.invoice_number)

    async def test_two_students_one_class(
        self, db: AsyncSession, classroom, student_user, manager_user
    ):
        second = await create_user(db, "second@edura-center.com", Role.STUDENT, manager_user)
        await enroll(db, student_user, classroom)
        await enroll(db, second, classroom)

        result = await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))

        assert (result.created, result.skipped) == (2, 0)
        bills = await all_bills(db)
        assert {b.student_id for b in bills} == {student_user.id, second.id}
        assert all(b.due_date == date(2024, 6, 15) for b in bills)
        assert all(b.status == BillingStatus.PENDING for b in bills)
        assert bills[0].invoice_number != bills[1].invoice_number

    async def test_zero_and_missing_rates_are_not_billed(
        self, db: AsyncSession, teacher_user, student_user
    ):
        free_class = await create_class(db, teacher_user, code="FREE0", tuition_rate=0)
        unpriced_class = await create_class(db, teacher_user, code="NONE0", tuition_rate=None)
        await enroll(db, student_user, free_class)
        await enroll(db, student_user, unpriced_class)

        result = await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))

        assert result.created == 0
        assert result.skipped == 2
        assert await all_bills(db) == []

    async def test_already_billed_is_skipped(
        self, db: AsyncSession, classroom, student_user
    ):
        await enroll(db, student_user, classroom)
        db.add(
            TuitionBilling(
                student_id=student_user.id,
                class_id=classroom.id,
                amount=400000,
                billing_month="2024-06",
                due_date=date(2024, 6, 15),
                status=BillingStatus.PAID,
            )
        )
        await db.commit()

        result = await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))

        assert (result.created, result.skipped) == (0, 1)
        bills = await all_bills(db)
        assert len(bills) == 1
        assert bills[0].amount == 400000

    async def test_second_run_creates_nothing(
        self, db: AsyncSession, classroom, student_user
    ):
        await enroll(db, student_user, classroom)
        now = local_time(2024, 6, 1, 0, 5)

        first = await generate_monthly_bills(db, now)
        second = await generate_monthly_bills(db, now)

        assert first.created == 1
        assert (second.created, second.skipped) == (0, 1)
        assert len(await all_bills(db)) == 1

    async def test_new_month_bills_again(
        self, db: AsyncSession, classroom, student_user
    ):
        await enroll(db, student_user, classroom)

        await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))
        result = await generate_monthly_bills(db, local_time(2024, 7, 1, 0, 5))

        assert result.billing_month == "2024-07"
        assert result.created == 1
        months = sorted(b.billing_month for b in await all_bills(db))
        assert months == ["2024-06", "2024-07"]

    async def test_month_follows_local_timezone(
        self, db: AsyncSession, classroom, student_user
    ):
        """00:30 on July 1st local time is still June 30th in UTC."""
        await enroll(db, student_user, classroom)

        result = await generate_monthly_bills(db, local_time(2024, 7, 1, 0, 30))

        assert result.billing_month == "2024-07"

    async def test_nothing_to_bill(self, db: AsyncSession):
        result = await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))

        assert (result.created, result.skipped) == (0, 0)


    async def test_due_day_is_clamped_in_short_months(
        self, db: AsyncSession, classroom, student_user, monkeypatch
    ):
        monkeypatch.setattr(settings, "BILLING_DUE_DAY", 31)
        await enroll(db, student_user, classroom)

        result = await generate_monthly_bills(db, local_time(2024, 2, 1, 0, 5))

        assert result.created == 1
        bills = await all_bills(db)
        assert bills[0].due_date == date(2024, 2, 29)

    async def test_bill_inserted_concurrently_is_not_duplicated(
        self, db: AsyncSession, classroom, student_user, monkeypatch
    ):
        """Another run bills the enrollment between the existence read and the insert."""
        await enroll(db, student_user, classroom)
        execute = db.execute

        async def racing_execute(statement, *args, **kwargs):
            if isinstance(statement, Insert):
                async with test_session_maker() as other:
                    other.add(
                        TuitionBilling(
                            student_id=student_user.id,
                            class_id=classroom.id,
                            amount=500000,
                            billing_month="2024-06",
                            due_date=date(2024, 6, 15),
                            status=BillingStatus.PENDING,
                            invoice_number="INV-202406-OTHERRUN",
                        )
                    )
                    await other.commit()
            return await execute(statement, *args, **kwargs)

        monkeypatch.setattr(db, "execute", racing_execute)

        result = await generate_monthly_bills(db, local_time(2024, 6, 1, 0, 5))

        monkeypatch.undo()
        assert (result.created, result.skipped) == (0, 1)
        bills = await all_bills(db)
        assert len(bills) == 1
        assert bills[0].invoice_number == "INV-202406-OTHERRUN"


class TestHelpers:
    def test_invoice_number_format(self):
        number = make_invoice_number("2024-12")

        assert re.fullmatch(r"INV-202412-[0-9A-F]{8}", number)

    def test_invoice_numbers_differ(self):
        assert make_invoice_number("2024-12") != make_invoice_number("2024-12")

    def test_aging_buckets(self):
        assert aging_bucket(1) == "1-30"
        assert aging_bucket(30) == "1-30"
        assert aging_bucket(31) == "31-60"
        assert aging_bucket(60) == "31-60"
        assert aging_bucket(61) == "61-90"
        assert aging_bucket(90) == "61-90"
        assert aging_bucket(91) == "90+"

    def test_aging_bucket_names_follow_buckets(self):
        assert AGING_BUCKET_NAMES == ("1-30", "31-60", "61-90", "90+")

    def test_due_date_in_month(self):
        assert due_date_in_month(date(2024, 6, 1), 15) == date(2024, 6, 15)
        assert due_date_in_month(date(2024, 2, 10), 31) == date(2024, 2, 29)
        assert due_date_in_month(date(2023, 2, 10), 30) == date(2023, 2, 28)
        assert due_date_in_month(date(2024, 4, 1), 31) == date(2024, 4, 30)
