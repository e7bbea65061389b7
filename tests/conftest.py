"""Shared fixtures: a fresh SQLite database per test and tenant seeding helpers."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from app import database
from app.cache import cache
from app.config import settings
from app.main import app
from app.security import create_access_token
from app.utils.slug import generate_slug
from models.company import Company
from models.user import User, UserRole
from models.workspace import Workspace

API = settings.API_PREFIX.rstrip("/")


@dataclass
class Member:
    user_id: int
    email: str
    company_id: int
    role: UserRole
    token: str

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


@dataclass
class Tenant:
    company_id: int
    workspace_id: int
    owner: Member

    @property
    def headers(self) -> dict:
        return self.owner.headers


def _member(user: User) -> Member:
    token = create_access_token(
        user_id=user.id, email=user.email, company_id=user.company_id, role=user.role
    )
    return Member(user_id=user.id, email=user.email, company_id=user.company_id, role=user.role, token=token)


async def _create_tenant(name: str) -> Tenant:
    slug = generate_slug(name)
    async with database.AsyncSessionLocal() as session:
        company = Company(name=name)
        session.add(company)
        await session.flush()
        owner = User(
            email=f"owner@{slug}.test",
            first_name=name,
            last_name="Owner",
            role=UserRole.OWNER,
            company_id=company.id,
        )
        workspace = Workspace(name=f"{name} Space", slug=f"{slug}-space", company_id=company.id)
        session.add_all([owner, workspace])
        await session.commit()
        return Tenant(company_id=company.id, workspace_id=workspace.id, owner=_member(owner))


async def _create_member(company_id: int, email: str) -> Member:
    async with database.AsyncSessionLocal() as session:
        user = User(email=email, first_name="Team", last_name="Member", role=UserRole.MEMBER, company_id=company_id)
        session.add(user)
        await session.commit()
        return _member(user)


@pytest.fixture
def client(tmp_path):
    database.init_engine(f"sqlite+aiosqlite:///{tmp_path / 'notehub-test.db'}")
    cache.clear()
    with TestClient(app) as test_client:
        yield test_client
    cache.clear()


@pytest.fixture
def make_tenant(client):
    def factory(name: str = "Acme") -> Tenant:
        return client.portal.call(_create_tenant, name)

    return factory


@pytest.fixture
def make_member(client):
    def factory(tenant: Tenant, email: str) -> Member:
        return client.portal.call(_create_member, tenant.company_id, email)

    return factory


@pytest.fixture
def run_db(client):
    """Run ``fn(session)`` on the app's event loop and return its result."""

    async def _call(fn):
        async with database.AsyncSessionLocal() as session:
            return await fn(session)

    def runner(fn):
        return client.portal.call(_call, fn)

    return runner


@pytest.fixture
def create_note(client):
    def factory(tenant, **overrides) -> dict:
        headers = overrides.pop("headers", None) or tenant.headers
        payload = {
            "title": "Sample note",
            "content": "Some content",
            "workspaceId": tenant.workspace_id,
            "tags": [],
            "type": "PRIVATE",
            "status": "DRAFT",
        }
        payload.update(overrides)
        response = client.post(f"{API}/notes", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return factory
