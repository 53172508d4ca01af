"""Tests for user management endpoints."""

from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.permissions import Role
from tests.conftest import auth_header, create_user


class TestCurrentUser:
    async def test_get_me(self, client: AsyncClient, teacher_user, teacher_token: str):
        response = await client.get("/api/v1/users/me", headers=auth_header(teacher_token))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "teacher@edura-center.com"
        assert data["role"] == "teacher"
        assert data["manager_id"] == str(teacher_user.manager_id)

    async def test_update_me(self, client: AsyncClient, student_token: str):
        response = await client.patch(
            "/api/v1/users/me",
            headers=auth_header(student_token),
            json={"name": "Renamed Student", "parent_phone": "0901234567"},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed Student"
        assert response.json()["parent_phone"] == "0901234567"

    async def test_change_password(self, client: AsyncClient, teacher_token: str):
        response = await client.post(
            "/api/v1/users/me/password",
            headers=auth_header(teacher_token),
            json={"current_password": "password123", "new_password": "newpassword"},
        )
        assert response.status_code == 204

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "teacher@edura-center.com", "password": "newpassword"},
        )
        assert login.status_code == 200

    async def test_change_password_wrong_current(self, client: AsyncClient, teacher_token: str):
        response = await client.post(
            "/api/v1/users/me/password",
            headers=auth_header(teacher_token),
            json={"current_password": "wrongpass", "new_password": "newpassword"},
        )

        assert response.status_code == 400


class TestCreateUser:
    async def test_manager_creates_teacher(self, client: AsyncClient, manager_user, manager_token: str):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(manager_token),
            json={"email": "new.teacher@edura-center.com", "name": "New Teacher", "role": "teacher"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "teacher"
        assert data["manager_id"] == str(manager_user.id)
        assert data["has_changed_password"] is False
        assert len(data["generated_password"]) >= 8

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "new.teacher@edura-center.com", "password": data["generated_password"]},
        )
        assert login.status_code == 200

    async def test_manager_cannot_create_manager(self, client: AsyncClient, manager_token: str):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(manager_token),
            json={"email": "boss@edura-center.com", "name": "Another Boss", "role": "manager"},
        )

        assert response.status_code == 403

    async def test_duplicate_email(self, client: AsyncClient, manager_token: str, teacher_user):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(manager_token),
            json={"email": "teacher@edura-center.com", "name": "Duplicate", "role": "teacher"},
        )

        assert response.status_code == 409

    async def test_teacher_cannot_create_users(self, client: AsyncClient, teacher_token: str):
        response = await client.post(
            "/api/v1/users",
            headers=auth_header(teacher_token),
            json={"email": "kid@edura-center.com", "name": "Some Kid", "role": "student"},
        )

        assert response.status_code == 403


class TestListUsers:
    async def test_list_only_own_center(
        self,
        client: AsyncClient,
        db: AsyncSession,
        manager_token: str,
        teacher_user,
        student_user,
    ):
        other_manager = await create_user(db, "other@edura-center.com", Role.MANAGER)
        await create_user(db, "outsider@edura-center.com", Role.STUDENT, other_manager)

        response = await client.get("/api/v1/users", headers=auth_header(manager_token))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        emails = {u["email"] for u in data["items"]}
        assert emails == {"teacher@edura-center.com", "student@edura-center.com"}

    async def test_filter_by_role(
        self, client: AsyncClient, manager_token: str, teacher_user, student_user
    ):
        response = await client.get(
            "/api/v1/users",
            headers=auth_header(manager_token),
            params={"role": "student"},
        )

        assert response.status_code == 200
        assert [u["email"] for u in response.json()["items"]] == ["student@edura-center.com"]

    async def test_get_user_of_other_center(
        self, client: AsyncClient, db: AsyncSession, manager_token: str
    ):
        other_manager = await create_user(db, "other@edura-center.com", Role.MANAGER)
        outsider = await create_user(db, "outsider@edura-center.com", Role.STUDENT, other_manager)

        response = await client.get(
            f"/api/v1/users/{outsider.id}", headers=auth_header(manager_token)
        )

        assert response.status_code == 404

    async def test_get_unknown_user(self, client: AsyncClient, manager_token: str):
        response = await client.get(f"/api/v1/users/{uuid4()}", headers=auth_header(manager_token))

        assert response.status_code == 404
