"""Pluggable generation backends for the review contract."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional, Protocol, Union

import httpx

from fair_review.app.common.errors import LLMNotConfiguredError
from fair_review.app.common.llm_retry import create_llm_retry_decorator, safe_timeout, with_llm_logging
from fair_review.app.core.config import Settings

logger = logging.getLogger(__name__)

BackendReply = Union[Dict[str, Any], str]

SYSTEM_PROMPT = "你是公平竞争审查专家，请输出纯 JSON。"

STUB_RESULT: Dict[str, Any] = {
    "riskScore": 65,
    "summary": "文本中包含可能限制交易对手独立自主的条款，存在排他性合作风险，需要调整不合理约束。",
    "issues": [
        {
            "title": "排他性合作条款",
            "level": "高",
            "description": "要求合作方在合同期内不得与其他竞争者合作，属于限制交易相对人自由选择合作伙伴的行为。",
            "suggestion": "建议删除或修改排他性条款，允许合作方与其他主体合作，或采用非独家的合作方式。",
            "lawReference": "《反垄断法》第十五条有关垄断协议的禁止性规定。",
        },
        {
            "title": "不合理的违约惩罚",
            "level": "中",
            "description": "使用提高佣金、降级流量等方式作为违约惩罚，可能被视为利用优势地位实施不公平条款。",
            "suggestion": "将违约责任改为以实际损失为基础的违约金或补偿，避免滥用平台优势。",
            "lawReference": "《反不正当竞争法》第五条有关利用优势地位排除、限制竞争的规定。",
        },
    ],
    "modelNote": "上述分析为模型基于公开法律文本和经验总结的结果，仅供参考，不构成法律意见。",
}


class ReviewBackend(Protocol):
    """Anything that turns a prompt into a parsed object or a JSON string."""

    def generate(self, prompt: str) -> Any:
        ...


class StubReviewBackend:
    """Returns a canned assessment so the contract works without a real model."""

    provider = "stub"

    def __init__(self, reply: Optional[BackendReply] = None) -> None:
        self._reply = reply if reply is not None else STUB_RESULT

    def generate(self, prompt: str) -> Any:
        logger.debug("Stub backend answering prompt", extra={"prompt_chars": len(prompt)})
        return copy.deepcopy(self._reply)


class OpenAICompatibleBackend:
    """Client for an OpenAI compatible chat-completions endpoint (DashScope by default)."""

    provider = "openai_compatible"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str,
        model: str,
        timeout: Any = 60.0,
        max_attempts: int = 1,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = safe_timeout(timeout)
        self._transport = transport
        self._post = create_llm_retry_decorator(max_attempts=max_attempts)(
            with_llm_logging(self.provider, model)(self._post_once)
        )

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise LLMNotConfiguredError("缺少模型 API Key")
        data = self._post(prompt)
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Chat completion reply has no message content", extra={"reply": str(data)[:500]})
            return ""

    def _post_once(self, prompt: str) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
            response.raise_for_status()
            return response.json()


def build_backend(settings: Settings) -> ReviewBackend:
    provider = (settings.llm_provider or "stub").lower()
    if provider in {"stub", "mock"}:
        return StubReviewBackend()
    if provider in {"openai", "openai_compatible", "dashscope"}:
        if not settings.llm_api_key:
            logger.warning("LLM API key is not set; review requests will fail until FCR_LLM_API_KEY is configured.")
        return OpenAICompatibleBackend(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
            max_attempts=settings.llm_max_attempts,
        )
    raise NotImplementedError(f"LLM provider '{settings.llm_provider}' not implemented")
