"""Parameter catalog routes: the grouped structure plus category and parameter admin."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...catalog import ParameterCatalog, duplicate_names, unmapped_parameters
from ..deps import get_catalog, get_current_user
from ..schemas import CategoryIn, ParameterIn

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/catalog")
async def get_catalog_structure(catalog: ParameterCatalog = Depends(get_catalog)):
    """Parameters grouped by ESG type and category name, with column problems."""
    structure = catalog.build_structure()
    return {
        "structure": {
            esg_type: {
                name: {"category_id": group.category_id, "parameters": group.parameters}
                for name, group in groups.items()
            }
            for esg_type, groups in structure.items()
        },
        "unmapped": unmapped_parameters(structure),
        "duplicates": [
            {"esg_type": esg_type, "column": column, "parameter_ids": ids}
            for (esg_type, column), ids in duplicate_names(structure).items()
        ],
    }


@router.get("/categories")
async def list_categories(
    type: str | None = Query(None),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    return catalog.list_categories(type)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryIn,
    user: str = Depends(get_current_user),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    return catalog.create_category(body.name, body.type, user=user)


@router.put("/categories/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryIn,
    user: str = Depends(get_current_user),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    category = catalog.update_category(category_id, body.name, body.type, user=user)
    if category is None:
        raise HTTPException(status_code=404, detail=f"Category {category_id} not found")
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    user: str = Depends(get_current_user),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    """Delete a category together with its parameters."""
    if not catalog.delete_category(category_id, user=user):
        raise HTTPException(status_code=404, detail=f"Category {category_id} not found")


@router.get("/parameters")
async def list_parameters(
    category_id: int | None = Query(None),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    return catalog.list_parameters(category_id)


@router.post("/parameters", status_code=status.HTTP_201_CREATED)
async def create_parameter(
    body: ParameterIn,
    user: str = Depends(get_current_user),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    return catalog.create_parameter(body.name, body.unit, body.category_id, user=user)


@router.put("/parameters/{parameter_id}")
async def update_parameter(
    parameter_id: int,
    body: ParameterIn,
    user: str = Depends(get_current_user),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    parameter = catalog.update_parameter(
        parameter_id, body.name, body.unit, body.category_id, user=user
    )
    if parameter is None:
        raise HTTPException(status_code=404, detail=f"Parameter {parameter_id} not found")
    return parameter


@router.delete("/parameters/{parameter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_parameter(
    parameter_id: int,
    user: str = Depends(get_current_user),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    if not catalog.delete_parameter(parameter_id, user=user):
        raise HTTPException(status_code=404, detail=f"Parameter {parameter_id} not found")
