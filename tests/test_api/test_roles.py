"""Tests for role and permission endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.models import User
from schoolhub.services.seed import DEFAULT_PERMISSIONS


@pytest.mark.asyncio
async def test_list_roles(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.get("/api/v1/roles", headers=admin_headers)
    assert response.status_code == 200
    roles = response.json()
    assert [role["name"] for role in roles] == ["Admin"]
    assert roles[0]["permissions"] == sorted(DEFAULT_PERMISSIONS)


@pytest.mark.asyncio
async def test_roles_require_permission(client: AsyncClient, user_headers: dict) -> None:
    response = await client.get("/api/v1/roles", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == (
        "You do not have permission to perform this operation"
    )


@pytest.mark.asyncio
async def test_create_role(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.post(
        "/api/v1/roles",
        json={"name": "Teacher", "permissions": ["users:read", "roles:read", "users:read"]},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Teacher"
    assert data["permissions"] == ["roles:read", "users:read"]
    assert "created_at" in data


@pytest.mark.asyncio
async def test_create_role_unknown_permission(
    client: AsyncClient, admin_headers: dict
) -> None:
    response = await client.post(
        "/api/v1/roles",
        json={"name": "Teacher", "permissions": ["users:read", "grades:write"]},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown permissions: grades:write"


@pytest.mark.asyncio
async def test_create_duplicate_role(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.post(
        "/api/v1/roles", json={"name": "Admin"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Role already exists"


@pytest.mark.asyncio
async def test_get_role(
    client: AsyncClient, admin_headers: dict, admin_user: User
) -> None:
    response = await client.get(
        f"/api/v1/roles/{admin_user.role_id}", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Admin"

    response = await client.get("/api/v1/roles/9999", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_role_permissions_take_effect_immediately(
    client: AsyncClient,
    admin_headers: dict,
    user_headers: dict,
    test_user: User,
    db_session: AsyncSession,
) -> None:
    created = await client.post(
        "/api/v1/roles",
        json={"name": "Registrar", "permissions": []},
        headers=admin_headers,
    )
    role_id = created.json()["id"]
    await client.put(
        f"/api/v1/users/{test_user.id}",
        json={"role_id": role_id},
        headers=admin_headers,
    )

    # The role claim in a session token is only set at issue time
    tokens = await client.post(
        "/api/v1/auth/login/json",
        json={"email": "student@example.com", "password": "password123"},
    )
    headers = {"Authorization": f"Bearer {tokens.json()['access_token']}"}
    assert (await client.get("/api/v1/users", headers=headers)).status_code == 403

    response = await client.put(
        f"/api/v1/roles/{role_id}",
        json={"permissions": ["users:read"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == ["users:read"]

    assert (await client.get("/api/v1/users", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_rename_role_conflict(client: AsyncClient, admin_headers: dict) -> None:
    created = await client.post(
        "/api/v1/roles", json={"name": "Teacher"}, headers=admin_headers
    )

    response = await client.put(
        f"/api/v1/roles/{created.json()['id']}",
        json={"name": "Admin"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_role_unassigns_users(
    client: AsyncClient, admin_headers: dict, test_user: User
) -> None:
    created = await client.post(
        "/api/v1/roles",
        json={"name": "Teacher", "permissions": ["users:read"]},
        headers=admin_headers,
    )
    role_id = created.json()["id"]
    await client.put(
        f"/api/v1/users/{test_user.id}",
        json={"role_id": role_id},
        headers=admin_headers,
    )

    response = await client.delete(f"/api/v1/roles/{role_id}", headers=admin_headers)
    assert response.status_code == 204

    user = await client.get(f"/api/v1/users/{test_user.id}", headers=admin_headers)
    assert user.json()["role_id"] is None
    assert (
        await client.get(f"/api/v1/roles/{role_id}", headers=admin_headers)
    ).status_code == 404


@pytest.mark.asyncio
async def test_list_permissions(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.get("/api/v1/permissions", headers=admin_headers)
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == sorted(DEFAULT_PERMISSIONS)


@pytest.mark.asyncio
async def test_create_permission(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.post(
        "/api/v1/permissions",
        json={"name": "students:read", "description": "View student records"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["name"] == "students:read"

    duplicate = await client.post(
        "/api/v1/permissions",
        json={"name": "students:read", "description": "Again"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == (
        'Permission with name "students:read" already exists'
    )


@pytest.mark.asyncio
async def test_create_permission_invalid_name(
    client: AsyncClient, admin_headers: dict
) -> None:
    response = await client.post(
        "/api/v1/permissions",
        json={"name": "Students Read", "description": "Bad name"},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_and_delete_permission(
    client: AsyncClient, admin_headers: dict
) -> None:
    created = await client.post(
        "/api/v1/permissions",
        json={"name": "exams:read", "description": "View exams"},
        headers=admin_headers,
    )
    permission_id = created.json()["id"]
    await client.post(
        "/api/v1/roles",
        json={"name": "Proctor", "permissions": ["exams:read"]},
        headers=admin_headers,
    )

    response = await client.put(
        f"/api/v1/permissions/{permission_id}",
        json={"description": "View exam schedules"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["description"] == "View exam schedules"

    response = await client.delete(
        f"/api/v1/permissions/{permission_id}", headers=admin_headers
    )
    assert response.status_code == 204

    roles = await client.get("/api/v1/roles", headers=admin_headers)
    proctor = next(role for role in roles.json() if role["name"] == "Proctor")
    assert proctor["permissions"] == []


@pytest.mark.asyncio
async def test_permissions_require_permission(
    client: AsyncClient, user_headers: dict
) -> None:
    response = await client.post(
        "/api/v1/permissions",
        json={"name": "students:read", "description": "View student records"},
        headers=user_headers,
    )
    assert response.status_code == 403
