"""Salary component catalog API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payroll_ledger.api.dependencies import Catalog, DbSession
from payroll_ledger.api.schemas import (
    ComponentCreate,
    ComponentDeleteResponse,
    ComponentResponse,
    ComponentUpdate,
    ErrorResponse,
)
from payroll_ledger.calculators.types import ComponentType

router = APIRouter(prefix="/payroll/components", tags=["components"])


@router.post(
    "",
    response_model=ComponentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_component(
    db: DbSession,
    catalog: Catalog,
    payload: ComponentCreate,
) -> ComponentResponse:
    component = await catalog.create_component(**payload.model_dump())
    await db.commit()
    return ComponentResponse.model_validate(component)


@router.get("", response_model=list[ComponentResponse])
async def list_components(
    catalog: Catalog,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 50,
) -> list[ComponentResponse]:
    components = await catalog.list_components(page=page - 1, page_size=page_size)
    return [ComponentResponse.model_validate(c) for c in components]


@router.get("/active", response_model=list[ComponentResponse])
async def list_active_components(catalog: Catalog) -> list[ComponentResponse]:
    """Active components in calculation order."""
    components = await catalog.list_active()
    return [ComponentResponse.model_validate(c) for c in components]


@router.get("/type/{component_type}", response_model=list[ComponentResponse])
async def list_components_by_type(
    catalog: Catalog,
    component_type: Annotated[ComponentType, Path()],
    active_only: bool = True,
) -> list[ComponentResponse]:
    components = await catalog.list_by_type(component_type, active_only=active_only)
    return [ComponentResponse.model_validate(c) for c in components]


@router.get(
    "/{salary_component_id}",
    response_model=ComponentResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_component(
    catalog: Catalog,
    salary_component_id: Annotated[UUID, Path()],
) -> ComponentResponse:
    component = await catalog.get_component(salary_component_id)
    return ComponentResponse.model_validate(component)


@router.put(
    "/{salary_component_id}",
    response_model=ComponentResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_component(
    db: DbSession,
    catalog: Catalog,
    salary_component_id: Annotated[UUID, Path()],
    payload: ComponentUpdate,
) -> ComponentResponse:
    component = await catalog.update_component(
        salary_component_id, **payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return ComponentResponse.model_validate(component)


@router.post(
    "/{salary_component_id}/deactivate",
    response_model=ComponentResponse,
    responses={404: {"model": ErrorResponse}},
)
async def deactivate_component(
    db: DbSession,
    catalog: Catalog,
    salary_component_id: Annotated[UUID, Path()],
) -> ComponentResponse:
    component = await catalog.deactivate_component(salary_component_id)
    await db.commit()
    return ComponentResponse.model_validate(component)


@router.delete(
    "/{salary_component_id}",
    response_model=ComponentDeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_component(
    db: DbSession,
    catalog: Catalog,
    salary_component_id: Annotated[UUID, Path()],
) -> ComponentDeleteResponse:
    """Delete an unreferenced component, or deactivate a referenced one."""
    deleted = await catalog.delete_component(salary_component_id)
    await db.commit()
    return ComponentDeleteResponse(
        salary_component_id=salary_component_id,
        deleted=deleted,
        deactivated=not deleted,
    )
