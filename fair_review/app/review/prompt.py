"""Prompt construction for fair-competition compliance review."""

from __future__ import annotations

from typing import Any, Dict, Optional

DEFAULT_BUSINESS_TYPE = "general"
DEFAULT_JURISDICTION = "cn"

REVIEW_PROMPT_TEMPLATE = """
你是一名熟悉反垄断法和反不正当竞争法的合规顾问，需要对以下商业安排进行公平竞争合规审查。请用中文回答。

【业务场景类型】{business_type}
【主要适用法域】{jurisdiction}
【文本内容】
{content}

请给出结构化输出（JSON），字段包括：
riskScore：0-100 的整数，分数越高表示竞争法风险越大；
summary：对整体风险的简短总结（2-4 句话）；
issues：数组，每个元素包含 title（风险点标题）、level（低/中/高）、description（风险点说明）、suggestion（整改建议）、lawReference（可能涉及的法律条款或监管指引）；
modelNote：对模型分析局限性的简短说明。

只输出 JSON，不要输出其他解释文字。"""


def build_prompt(
    *,
    business_type: Optional[str],
    jurisdiction: Optional[str],
    content: str,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Build the single instruction block sent to the generation backend.

    ``options`` is accepted for forward compatibility (e.g. toggling the score)
    and does not change the prompt yet.
    """
    return REVIEW_PROMPT_TEMPLATE.format(
        business_type=business_type or DEFAULT_BUSINESS_TYPE,
        jurisdiction=jurisdiction or DEFAULT_JURISDICTION,
        content=content,
    )
