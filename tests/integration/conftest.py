"""Integration test fixtures: the FastAPI app against in-memory SQLite."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from payroll_ledger.api.app import create_app
from payroll_ledger.api.dependencies import get_db_session
from payroll_ledger.database import make_session_factory
from payroll_ledger.directory import InMemoryEmployeeDirectory


@pytest.fixture
async def client(
    engine: AsyncEngine, directory: InMemoryEmployeeDirectory
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app whose sessions use the test engine."""
    app = create_app(directory)
    session_factory = make_session_factory(engine)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def period_id(client: AsyncClient) -> str:
    response = await client.post(
        "/api/v1/payroll/periods",
        json={
            "name": "January 2026",
            "start_date": "2026-01-01",
            "end_date": "2026-01-31",
            "pay_date": "2026-02-01",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["payroll_period_id"]


@pytest.fixture
async def component_ids(client: AsyncClient) -> dict[str, str]:
    """A 10% deduction and a fixed 50.00 tax, created through the API."""
    pension = await client.post(
        "/api/v1/payroll/components",
        json={
            "name": "Pension",
            "component_type": "DEDUCTION",
            "percentage": "10",
            "calculation_order": 20,
        },
    )
    income_tax = await client.post(
        "/api/v1/payroll/components",
        json={
            "name": "Income Tax",
            "component_type": "TAX",
            "amount": "50.00",
            "calculation_order": 10,
        },
    )
    assert pension.status_code == 201, pension.text
    assert income_tax.status_code == 201, income_tax.text
    return {
        "pension": pension.json()["salary_component_id"],
        "income_tax": income_tax.json()["salary_component_id"],
    }
