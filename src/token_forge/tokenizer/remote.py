"""
远程 Token 计数（AI21 tokenize API）。

AI21 没有公开可本地加载的 tokenizer，只能调用其 tokenize 接口。
这是一个独立失败的外部协作者：任何网络、HTTP 或解析错误都返回 0，
不参与核心的降级估算流程。
"""

from __future__ import annotations

import logging
import os

import httpx

from token_forge.config.schema import RemoteCountConfig

logger = logging.getLogger(__name__)


class RemoteTokenCounter:
    """
    AI21 远程计数器。

    用法::

        counter = RemoteTokenCounter(RemoteCountConfig())
        count = await counter.count("Hello, world!")

    参数 client 用于注入自定义 httpx.AsyncClient（测试中配合 MockTransport）。
    """

    def __init__(
        self,
        config: RemoteCountConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config if config is not None else RemoteCountConfig()
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def _api_key(self) -> str:
        return os.environ.get(self._config.api_key_env, "")

    async def count(self, text: str) -> int:
        """
        返回远程 tokenizer 的 Token 数量，失败时返回 0。

        参数:
            text: 待计数的文本
        """
        if not self._config.enabled:
            return 0

        api_key = self._api_key()
        if not api_key:
            logger.warning("未设置环境变量 %s，远程计数返回 0。", self._config.api_key_env)
            return 0

        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    self._config.url,
                    json={"text": text},
                    headers=headers,
                    timeout=self._config.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                    response = await client.post(self._config.url, json={"text": text}, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("远程计数请求失败：%s", e)
            return 0

        tokens = data.get("tokens") if isinstance(data, dict) else None
        return len(tokens) if isinstance(tokens, list) else 0
