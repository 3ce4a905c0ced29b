"""Site administration with validation and audit events."""

from . import audit
from .db import Database
from .db.repository import Site
from .errors import ValidationError


class SiteService:
    """Service for reporting site operations."""

    def __init__(self, db: Database):
        self.db = db

    def list_sites(self) -> list[Site]:
        return self.db.list_sites()

    def get_site(self, site_id: int) -> Site | None:
        return self.db.get_site(site_id)

    def create_site(
        self,
        name: str,
        location: str | None = None,
        type: str | None = None,
        user: str | None = None,
    ) -> Site:
        if not name or not name.strip():
            raise ValidationError("Site name is required")
        site = self.db.create_site(name.strip(), location or None, type or None)
        audit.log_site_change("created", site.id, site.name, user)
        return site

    def delete_site(self, site_id: int, user: str | None = None) -> bool:
        """Delete a site; its submissions remain and report as Unknown Site."""
        site = self.db.get_site(site_id)
        deleted = self.db.delete_site(site_id)
        if deleted and site:
            audit.log_site_change("deleted", site_id, site.name, user)
        return deleted
