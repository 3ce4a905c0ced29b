"""Reporting site routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from ...db import Database
from ...sites import SiteService
from ..deps import get_current_user, get_db
from ..schemas import SiteCreate

router = APIRouter(prefix="/api/sites", tags=["sites"])


@router.get("")
async def list_sites(db: Database = Depends(get_db)):
    return SiteService(db).list_sites()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_site(
    body: SiteCreate,
    user: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    return SiteService(db).create_site(body.name, body.location, body.type, user=user)


@router.get("/{site_id}")
async def get_site(site_id: int, db: Database = Depends(get_db)):
    site = SiteService(db).get_site(site_id)
    if site is None:
        raise HTTPException(status_code=404, detail=f"Site {site_id} not found")
    return site


@router.delete("/{site_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_site(
    site_id: int,
    user: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Delete a site. Its submissions are kept and report as Unknown Site."""
    if not SiteService(db).delete_site(site_id, user=user):
        raise HTTPException(status_code=404, detail=f"Site {site_id} not found")
