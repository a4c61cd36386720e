"""REST endpoint for the knowledge base."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from . import service

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


class KnowledgeListResponse(BaseModel):
    items: List[service.KnowledgeItem]


@router.get("", response_model=KnowledgeListResponse)
def search_knowledge(q: Optional[str] = Query(None, description="按标题或标签筛选")):
    return KnowledgeListResponse(items=service.search(q))
