"""
Catalog routes: standards, standard item trees, categories, templates
"""
import uuid
from typing import List, Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.catalog import CatalogReader
from app.api.schemas.audit import (
    CategoryResponse, StandardItemNode, StandardItemsResponse, StandardResponse, TemplateResponse
)
from app.core.config import settings
from app.db import get_db
from app.db.models import AuditStandard
from app.wizard.item_tree import StandardItem, count_questions, filter_by_search, show_bulk_toggle

router = APIRouter()


def _to_node(item: StandardItem) -> StandardItemNode:
    return StandardItemNode(
        id=item.id,
        item_number=item.item_number,
        title=item.title,
        field_type=item.field_type,
        children=[_to_node(c) for c in item.children],
    )


def _to_nodes(tree: Sequence[StandardItem]) -> List[StandardItemNode]:
    return [_to_node(item) for item in tree]


@router.get("/standards", response_model=List[StandardResponse])
async def list_standards(db: AsyncSession = Depends(get_db)):
    """List active standards"""
    return await CatalogReader(db).fetch_standards()


@router.get("/standards/{standard_id}/items", response_model=StandardItemsResponse)
async def get_standard_items(
    standard_id: uuid.UUID,
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Item tree of one standard, optionally filtered by a search term.

    A term matching nothing returns an empty item list, not an error.
    """
    result = await db.execute(select(AuditStandard.id).where(AuditStandard.id == standard_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Standard not found")

    tree = await CatalogReader(db).fetch_standard_items(str(standard_id))

    term = (search or "").strip()
    if len(term) < settings.ITEM_SEARCH_MIN_LENGTH:
        term = ""
    visible = filter_by_search(tree, term)

    return StandardItemsResponse(
        standard_id=standard_id,
        search=term or None,
        question_count=count_questions(visible),
        show_bulk_toggle=show_bulk_toggle(visible),
        items=_to_nodes(visible),
    )


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await CatalogReader(db).fetch_categories()


@router.get("/templates", response_model=List[TemplateResponse])
async def list_templates(
    category_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Templates of one category, or all templates when no category is given"""
    return await CatalogReader(db).fetch_templates(str(category_id) if category_id else None)
