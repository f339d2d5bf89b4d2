"""
Read side of the audit wizard: standards, item trees, categories, templates
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.audit_store import as_uuid
from app.db.models import AuditCategory, AuditStandard, AuditStandardItem, AuditTemplate
from app.wizard.item_tree import ItemCatalog, ItemTree, build_tree


class CatalogReader:
    """Catalog queries used to feed the wizard"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch_standards(self, active_only: bool = True) -> List[Dict]:
        query = select(AuditStandard).order_by(AuditStandard.code)
        if active_only:
            query = query.where(AuditStandard.is_active.is_(True))
        result = await self.db.execute(query)
        return [
            {"id": str(s.id), "code": s.code, "name": s.name, "version": s.version}
            for s in result.scalars().all()
        ]

    async def fetch_standard_items(self, standard_id: str) -> ItemTree:
        """Flat item rows of one standard, nested into a tree."""
        result = await self.db.execute(
            select(AuditStandardItem)
            .where(AuditStandardItem.standard_id == as_uuid(standard_id))
            .order_by(AuditStandardItem.display_order, AuditStandardItem.item_number)
        )
        return build_tree(result.scalars().all())

    async def fetch_categories(self) -> List[Dict]:
        result = await self.db.execute(select(AuditCategory).order_by(AuditCategory.title))
        return [{"id": str(c.id), "title": c.title} for c in result.scalars().all()]

    async def fetch_templates(self, category_id: Optional[str] = None) -> List[Dict]:
        query = select(AuditTemplate).order_by(AuditTemplate.name)
        if category_id:
            query = query.where(AuditTemplate.category_id == as_uuid(category_id))
        result = await self.db.execute(query)
        return [
            {"id": str(t.id), "name": t.name, "category_id": str(t.category_id)}
            for t in result.scalars().all()
        ]

    async def load_catalog(self, standard_ids: Iterable[str]) -> ItemCatalog:
        """Item trees of the given standards, each fetched once."""
        catalog = ItemCatalog()
        for standard_id in standard_ids:
            await catalog.ensure_loaded(standard_id, self.fetch_standard_items)
        return catalog
