"""Static fair-competition knowledge base."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class KnowledgeItem(BaseModel):
    title: str
    tags: List[str] = Field(default_factory=list)
    content: str


KNOWLEDGE_ITEMS: List[KnowledgeItem] = [
    KnowledgeItem(
        title="地方企业补贴是否允许",
        tags=["市场准入", "补贴"],
        content=(
            "原则上不得给予特定地区的企业差别化补贴，以免形成地方保护。"
            "依据《反不正当竞争法》第八条，政府不得对外地企业设置不合理条件。"
        ),
    ),
    KnowledgeItem(
        title="行政许可需要符合哪些程序",
        tags=["行政许可"],
        content=(
            "行政许可应当遵循公开、公平、公正的原则，不得设定不合理的准入条件。"
            "《行政许可法》第十五条明确列出了许可事项的设定权限和程序。"
        ),
    ),
    KnowledgeItem(
        title="是否可以设置行业配额",
        tags=["经营行为"],
        content=(
            "设定生产或销售配额可能限制竞争，应谨慎评估。"
            "如果确有需要，应当符合《公平竞争审查办法》第二条的相关规定。"
        ),
    ),
]


def search(query: Optional[str] = None) -> List[KnowledgeItem]:
    """Entries whose title or any tag contains ``query`` (case-insensitive)."""
    q = (query or "").strip().lower()
    if not q:
        return list(KNOWLEDGE_ITEMS)
    return [
        item
        for item in KNOWLEDGE_ITEMS
        if q in item.title.lower() or any(q in tag.lower() for tag in item.tags)
    ]
