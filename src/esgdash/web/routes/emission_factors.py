"""Emission factor reference table routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from ...db import Database
from ..deps import get_db
from ..schemas import EmissionFactorCreate, EmissionFactorUpdate

router = APIRouter(prefix="/api/emission-factors", tags=["emission-factors"])


@router.get("")
async def list_emission_factors(db: Database = Depends(get_db)):
    return db.list_emission_factors()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_emission_factor(body: EmissionFactorCreate, db: Database = Depends(get_db)):
    return db.create_emission_factor(**body.model_dump())


@router.put("/{factor_id}")
async def update_emission_factor(
    factor_id: int,
    body: EmissionFactorUpdate,
    db: Database = Depends(get_db),
):
    factor = db.update_emission_factor(factor_id, **body.model_dump(exclude_none=True))
    if factor is None:
        raise HTTPException(status_code=404, detail=f"Emission factor {factor_id} not found")
    return factor


@router.delete("/{factor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_emission_factor(factor_id: int, db: Database = Depends(get_db)):
    if not db.delete_emission_factor(factor_id):
        raise HTTPException(status_code=404, detail=f"Emission factor {factor_id} not found")
