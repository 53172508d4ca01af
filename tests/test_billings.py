"""Tests for billing management API."""

from datetime import date, datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.permissions import Role
from edura.models.billing import BillingStatus, PaymentMethod, TuitionBilling
from edura.models.payroll import TutorPayment
from tests.conftest import auth_header, create_class, create_user, enroll, local_time


async def add_bill(
    db: AsyncSession,
    student,
    classroom,
    billing_month: str = "2024-06",
    due_date: date = date(2024, 6, 15),
    status: BillingStatus = BillingStatus.PENDING,
    amount: int = 500000,
    payment_method: PaymentMethod | None = None,
) -> TuitionBilling:
    bill = TuitionBilling(
        student_id=student.id,
        class_id=classroom.id,
        amount=amount,
        billing_month=billing_month,
        due_date=due_date,
        status=status,
        payment_method=payment_method,
        invoice_number=f"INV-{billing_month.replace('-', '')}-TEST0001",
    )
    db.add(bill)
    await db.commit()
    await db.refresh(bill)
    return bill


@pytest.fixture
async def bill(db: AsyncSession, student_user, classroom) -> TuitionBilling:
    return await add_bill(db, student_user, classroom)


class TestListBillings:
    async def test_list_center_bills(
        self, client: AsyncClient, db: AsyncSession, manager_token: str, bill
    ):
        other_manager = await create_user(db, "other@edura-center.com", Role.MANAGER)
        outsider = await create_user(db, "out.s@edura-center.com", Role.STUDENT, other_manager)
        other_teacher = await create_user(db, "out.t@edura-center.com", Role.TEACHER, other_manager)
        await add_bill(db, outsider, await create_class(db, other_teacher, code="OUT01"))

        response = await client.get("/api/v1/billings", headers=auth_header(manager_token))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        item = data["items"][0]
        assert item["id"] == str(bill.id)
        assert item["student"]["name"] == "Student"
        assert item["classroom"]["class_name"] == "Math 101"

    async def test_filters(
        self, client: AsyncClient, db: AsyncSession, manager_token: str, student_user, classroom
    ):
        await add_bill(db, student_user, classroom, billing_month="2024-05", status=BillingStatus.PAID)
        await add_bill(db, student_user, classroom, billing_month="2024-06")

        response = await client.get(
            "/api/v1/billings",
            headers=auth_header(manager_token),
            params={"status": "pending"},
        )
        assert [b["billing_month"] for b in response.json()["items"]] == ["2024-06"]

        response = await client.get(
            "/api/v1/billings",
            headers=auth_header(manager_token),
            params={"billing_month": "2024-05"},
        )
        assert [b["status"] for b in response.json()["items"]] == ["paid"]

    async def test_bad_month_filter(self, client: AsyncClient, manager_token: str):
        response = await client.get(
            "/api/v1/billings",
            headers=auth_header(manager_token),
            params={"billing_month": "2024-13"},
        )

        assert response.status_code == 400

    async def test_teacher_forbidden(self, client: AsyncClient, teacher_token: str):
        response = await client.get("/api/v1/billings", headers=auth_header(teacher_token))

        assert response.status_code == 403


class TestGenerateBillings:
    async def test_generate_for_month(
        self, client: AsyncClient, db: AsyncSession, manager_token: str, student_user, classroom
    ):
        await enroll(db, student_user, classroom)

        response = await client.post(
            "/api/v1/billings/generate",
            headers=auth_header(manager_token),
            json={"billing_month": "2024-08", "due_date": "2024-08-20"},
        )

        assert response.status_code == 200
        assert response.json() == {"created": 1, "skipped": 0}

        listing = await client.get("/api/v1/billings", headers=auth_header(manager_token))
        item = listing.json()["items"][0]
        assert item["billing_month"] == "2024-08"
        assert item["due_date"] == "2024-08-20"
        assert item["amount"] == 500000

    async def test_generate_twice(
        self, client: AsyncClient, db: AsyncSession, manager_token: str, student_user, classroom
    ):
        await enroll(db, student_user, classroom)
        payload = {"billing_month": "2024-08", "due_date": "2024-08-20"}

        await client.post("/api/v1/billings/generate", headers=auth_header(manager_token), json=payload)
        response = await client.post(
            "/api/v1/billings/generate", headers=auth_header(manager_token), json=payload
        )

        assert response.json() == {"created": 0, "skipped": 1}

    async def test_no_rates_set(
        self, client: AsyncClient, db: AsyncSession, manager_token: str, student_user, teacher_user
    ):
        unpriced = await create_class(db, teacher_user, code="NONE0")
        await enroll(db, student_user, unpriced)

        response = await client.post(
            "/api/v1/billings/generate",
            headers=auth_header(manager_token),
            json={"billing_month": "2024-08", "due_date": "2024-08-20"},
        )

        assert response.status_code == 400

    async def test_restricted_to_given_classes(
        self,
        client: AsyncClient,
        db: AsyncSession,
        manager_token: str,
        student_user,
        teacher_user,
        classroom,
    ):
        other_class = await create_class(db, teacher_user, code="SCI01", tuition_rate=300000)
        await enroll(db, student_user, classroom)
        await enroll(db, student_user, other_class)

        response = await client.post(
            "/api/v1/billings/generate",
            headers=auth_header(manager_token),
            json={
                "billing_month": "2024-08",
                "due_date": "2024-08-20",
                "class_ids": [str(other_class.id)],
            },
        )

        assert response.json() == {"created": 1, "skipped": 0}

    async def test_ignores_other_centers(
        self, client: AsyncClient, db: AsyncSession, manager_token: str
    ):
        other_manager = await create_user(db, "other@edura-center.com", Role.MANAGER)
        outsider = await create_user(db, "out.s@edura-center.com", Role.STUDENT, other_manager)
        other_teacher = await create_user(db, "out.t@edura-center.com", Role.TEACHER, other_manager)
        foreign_class = await create_class(db, other_teacher, code="OUT01", tuition_rate=100)
        await enroll(db, outsider, foreign_class)

        response = await client.post(
            "/api/v1/billings/generate",
            headers=auth_header(manager_token),
            json={
                "billing_month": "2024-08",
                "due_date": "2024-08-20",
                "class_ids": [str(foreign_class.id)],
            },
        )

        assert response.status_code == 400


class TestUpdateStatus:
    async def test_mark_paid(self, client: AsyncClient, clock, manager_token: str, bill):
        clock.moment = local_time(2024, 6, 12, 10, 30)

        response = await client.patch(
            f"/api/v1/billings/{bill.id}/status",
            headers=auth_header(manager_token),
            json={"status": "paid", "payment_method": "momo", "notes": "Paid at desk"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "paid"
        assert data["payment_method"] == "momo"
        assert data["notes"] == "Paid at desk"
        paid_at = datetime.fromisoformat(data["paid_at"])
        assert (paid_at.year, paid_at.month, paid_at.day, paid_at.hour) == (2024, 6, 12, 10)

    async def test_other_status_clears_payment(
        self, client: AsyncClient, manager_token: str, bill
    ):
        await client.patch(
            f"/api/v1/billings/{bill.id}/status",
            headers=auth_header(manager_token),
            json={"status": "paid", "payment_method": "cash"},
        )

        response = await client.patch(
            f"/api/v1/billings/{bill.id}/status",
            headers=auth_header(manager_token),
            json={"status": "overdue", "payment_method": "cash"},
        )

        data = response.json()
        assert data["status"] == "overdue"
        assert data["paid_at"] is None
        assert data["payment_method"] is None

    async def test_invalid_status(self, client: AsyncClient, manager_token: str, bill):
        response = await client.patch(
            f"/api/v1/billings/{bill.id}/status",
            headers=auth_header(manager_token),
            json={"status": "refunded"},
        )

        assert response.status_code == 400

    async def test_unknown_bill(self, client: AsyncClient, manager_token: str):
        response = await client.patch(
            f"/api/v1/billings/{uuid4()}/status",
            headers=auth_header(manager_token),
            json={"status": "paid"},
        )

        assert response.status_code == 404


class TestOverdue:
    async def test_aging(
        self,
        client: AsyncClient,
        db: AsyncSession,
        clock,
        manager_token: str,
        student_user,
        classroom,
    ):
        clock.moment = local_time(2024, 6, 30, 9, 0)
        await add_bill(
            db, student_user, classroom, "2024-06", date(2024, 6, 15), BillingStatus.OVERDUE
        )
        await add_bill(
            db, student_user, classroom, "2024-03", date(2024, 3, 15), BillingStatus.OVERDUE, 200000
        )
        await add_bill(db, student_user, classroom, "2024-05", date(2024, 5, 15), BillingStatus.PAID)

        response = await client.get("/api/v1/billings/overdue", headers=auth_header(manager_token))

        assert response.status_code == 200
        data = response.json()
        assert [(b["billing_month"], b["days_overdue"], b["aging_bucket"]) for b in data["items"]] == [
            ("2024-03", 107, "90+"),
            ("2024-06", 15, "1-30"),
        ]
        assert data["total_amount"] == 700000
        assert data["bucket_totals"] == {"1-30": 500000, "31-60": 0, "61-90": 0, "90+": 200000}

    async def test_no_overdue(self, client: AsyncClient, manager_token: str):
        response = await client.get("/api/v1/billings/overdue", headers=auth_header(manager_token))

        assert response.json()["items"] == []
        assert response.json()["total_amount"] == 0


class TestBillingViews:
    async def test_get_invoice(self, client: AsyncClient, manager_token: str, bill):
        response = await client.get(f"/api/v1/billings/{bill.id}", headers=auth_header(manager_token))

        assert response.status_code == 200
        assert response.json()["invoice_number"] == "INV-202406-TEST0001"

    async def test_student_sees_own_bills(
        self, client: AsyncClient, db: AsyncSession, student_token: str, bill, manager_user, classroom
    ):
        classmate = await create_user(db, "mate@edura-center.com", Role.STUDENT, manager_user)
        await add_bill(db, classmate, classroom)

        response = await client.get("/api/v1/billings/me", headers=auth_header(student_token))

        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == [str(bill.id)]


class TestCollectionMetrics:
    async def add_bills(self, db: AsyncSession, student_user, teacher_user, classroom):
        second_class = await create_class(db, teacher_user, code="SEC01")
        await add_bill(
            db,
            student_user,
            classroom,
            billing_month="2024-05",
            status=BillingStatus.PAID,
            payment_method=PaymentMethod.CASH,
        )
        await add_bill(db, student_user, classroom, status=BillingStatus.PAID, amount=300000)
        await add_bill(db, student_user, second_class, amount=200000)

        other_manager = await create_user(db, "other@edura-center.com", Role.MANAGER)
        outsider = await create_user(db, "out.s@edura-center.com", Role.STUDENT, other_manager)
        other_teacher = await create_user(db, "out.t@edura-center.com", Role.TEACHER, other_manager)
        await add_bill(
            db,
            outsider,
            await create_class(db, other_teacher, code="OUT01"),
            status=BillingStatus.PAID,
        )

    async def test_all_months(
        self,
        client: AsyncClient,
        db: AsyncSession,
        manager_token: str,
        student_user,
        teacher_user,
        classroom,
    ):
        await self.add_bills(db, student_user, teacher_user, classroom)

        response = await client.get(
            "/api/v1/billings/collection-metrics", headers=auth_header(manager_token)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_billed"] == 1000000
        assert data["total_collected"] == 800000
        assert data["collection_rate"] == 80
        shares = {s["method"]: (s["count"], s["amount"]) for s in data["payment_method_distribution"]}
        assert shares == {"cash": (1, 500000), "unknown": (1, 300000)}

    async def test_month_range(
        self,
        client: AsyncClient,
        db: AsyncSession,
        manager_token: str,
        student_user,
        teacher_user,
        classroom,
    ):
        await self.add_bills(db, student_user, teacher_user, classroom)

        response = await client.get(
            "/api/v1/billings/collection-metrics",
            headers=auth_header(manager_token),
            params={"start_month": "2024-06", "end_month": "2024-06"},
        )

        data = response.json()
        assert (data["total_billed"], data["total_collected"]) == (500000, 300000)
        assert data["collection_rate"] == 60

    async def test_no_bills(self, client: AsyncClient, manager_token: str):
        response = await client.get(
            "/api/v1/billings/collection-metrics", headers=auth_header(manager_token)
        )

        assert response.json() == {
            "total_billed": 0,
            "total_collected": 0,
            "collection_rate": 0,
            "payment_method_distribution": [],
        }


class TestFinancialSummary:
    async def test_summary(
        self,
        client: AsyncClient,
        db: AsyncSession,
        manager_token: str,
        student_user,
        teacher_user,
        classroom,
    ):
        """The test clock is in June 2024."""
        second_class = await create_class(db, teacher_user, code="SEC01")
        third_class = await create_class(db, teacher_user, code="THR01")
        await add_bill(
            db, student_user, classroom, billing_month="2024-05", status=BillingStatus.PAID
        )
        await add_bill(
            db,
            student_user,
            second_class,
            billing_month="2024-05",
            status=BillingStatus.OVERDUE,
            amount=100000,
        )
        await add_bill(db, student_user, classroom, status=BillingStatus.PAID, amount=300000)
        await add_bill(db, student_user, second_class, amount=200000)
        await add_bill(
            db, student_user, third_class, status=BillingStatus.CANCELLED, amount=50000
        )
        db.add_all(
            [
                TutorPayment(
                    teacher_id=teacher_user.id,
                    amount=400000,
                    payment_month="2024-06",
                    status=BillingStatus.PENDING,
                ),
                TutorPayment(
                    teacher_id=teacher_user.id,
                    amount=100000,
                    payment_month="2024-05",
                    status=BillingStatus.PAID,
                ),
            ]
        )
        await db.commit()

        response = await client.get("/api/v1/billings/summary", headers=auth_header(manager_token))

        assert response.status_code == 200
        assert response.json() == {
            "total_revenue": 800000,
            "outstanding_amount": 300000,
            "outstanding_count": 2,
            "month_revenue": 300000,
            "pending_tutor_payments": 400000,
            "pending_tutor_count": 1,
            "monthly_trend": [
                {"month": "2024-05", "revenue": 500000, "outstanding": 100000},
                {"month": "2024-06", "revenue": 300000, "outstanding": 200000},
            ],
        }

    async def test_empty_center(self, client: AsyncClient, manager_token: str):
        response = await client.get("/api/v1/billings/summary", headers=auth_header(manager_token))

        data = response.json()
        assert data["total_revenue"] == 0
        assert data["pending_tutor_count"] == 0
        assert data["monthly_trend"] == []

    async def test_teacher_forbidden(self, client: AsyncClient, teacher_token: str):
        response = await client.get("/api/v1/billings/summary", headers=auth_header(teacher_token))

        assert response.status_code == 403
