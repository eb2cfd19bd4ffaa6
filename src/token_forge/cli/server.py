"""
FastAPI HTTP 服务器实现。

提供 Token 计数与调试端点：
- POST /api/tokenize/openai?model= — 消息列表计数（含格式开销）
- POST /api/tokenize/openai-encode?model= — 编码文本，返回 ids / count / chunks
- POST /api/decode/openai-decode?model= — 解码 Token ID 列表
- POST /api/tokenize/{name} — 具名 tokenizer 编码
- POST /api/decode/{name} — 具名 tokenizer 解码
- POST /api/tokenize/ai21 — 通过 AI21 接口计数第一条消息
- GET /api/tokenize/legacy-models — 旧版补全模型目录
- GET /health — 健康检查

响应保持调用方已依赖的原始结构（如 {"token_count": 12}），不做统一包装；
只有错误响应使用 {"error": ..., "metadata": ...}。
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from token_forge import TokenForge, __version__
from token_forge.errors.exceptions import TokenForgeError
from token_forge.tokenizer.resolver import DEFAULT_FAMILY, NAMED_TOKENIZERS

logger = logging.getLogger(__name__)

# ============================================================
# Request 模型（Pydantic）
# ============================================================


class TextRequest(BaseModel):
    """编码请求。"""

    text: str = Field(default="", description="待编码文本")


class IdsRequest(BaseModel):
    """解码请求。"""

    ids: list[int] = Field(default_factory=list, description="Token ID 列表")


# ============================================================
# FastAPI 应用
# ============================================================


def create_app(
    config_path: str | None = None,
    forge: TokenForge | None = None,
    enable_cors: bool = False,
) -> FastAPI:
    """
    创建 FastAPI 应用实例。

    Args:
        config_path: 配置文件路径（forge 为 None 时使用）
        forge: 已构造的 TokenForge 实例（测试中注入假后端）
        enable_cors: 是否启用 CORS

    Returns:
        FastAPI 应用实例
    """
    forge_instance = forge if forge is not None else TokenForge(
        config_path=Path(config_path) if config_path else None,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        states = forge_instance.warm()
        logger.info("预加载完成：%s", {name: state.value for name, state in states.items()})
        yield

    app = FastAPI(
        title="Token Forge API",
        description="多后端 Token 计数引擎 HTTP API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.forge = forge_instance

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # 全局异常处理器
    @app.exception_handler(TokenForgeError)
    async def token_forge_error_handler(request: Request, exc: TokenForgeError) -> JSONResponse:
        """处理 TokenForge 异常，返回三段式错误信息。"""
        return JSONResponse(
            status_code=400,
            content={
                "error": exc.to_dict(),
                "metadata": {
                    "error_type": type(exc).__name__,
                    "timestamp": datetime.now().isoformat(),
                },
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """处理 HTTP 异常。"""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "metadata": {
                    "status_code": exc.status_code,
                    "timestamp": datetime.now().isoformat(),
                },
            },
        )

    def require_named(name: str) -> str:
        if name not in NAMED_TOKENIZERS:
            raise HTTPException(
                status_code=404,
                detail=f"未知的 tokenizer '{name}'，可用：{', '.join(NAMED_TOKENIZERS)}",
            )
        return name

    # ============================================================
    # API 端点
    # ============================================================
    # 固定路径必须注册在 /api/tokenize/{name} 之前

    @app.get("/api/tokenize/legacy-models", summary="旧版补全模型目录")
    def legacy_models() -> dict[str, Any]:
        return {"models": sorted(forge_instance.list_legacy_completion_models())}

    @app.post("/api/tokenize/openai", summary="消息列表计数")
    def tokenize_openai(
        messages: list[Any] = Body(...),
        model: str = Query(default=DEFAULT_FAMILY.name),
    ) -> dict[str, Any]:
        """
        计算聊天消息列表的 Token 数量。

        同步端点：FastAPI 在线程池中执行，计数不会阻塞事件循环。
        """
        return forge_instance.count_messages(model, messages).to_dict()

    @app.post("/api/tokenize/openai-encode", summary="编码文本（调试）")
    def tokenize_openai_encode(
        request: TextRequest,
        model: str = Query(default=DEFAULT_FAMILY.name),
    ) -> dict[str, Any]:
        return forge_instance.encode_debug(model, request.text).to_dict()

    @app.post("/api/decode/openai-decode", summary="解码 Token ID（调试）")
    def decode_openai(
        request: IdsRequest,
        model: str = Query(default=DEFAULT_FAMILY.name),
    ) -> dict[str, Any]:
        return forge_instance.decode_debug(model, request.ids).to_dict()

    @app.post("/api/tokenize/ai21", summary="AI21 远程计数")
    async def tokenize_ai21(
        messages: list[Any] = Body(...),
    ) -> dict[str, Any]:
        """计数第一条消息的内容；远程接口不可用时返回 0。"""
        result = await forge_instance.count_remote(messages)
        return result.to_dict()

    @app.post("/api/tokenize/{name}", summary="具名 tokenizer 编码")
    def tokenize_named(name: str, request: TextRequest) -> dict[str, Any]:
        return forge_instance.encode_named(require_named(name), request.text).to_dict()

    @app.post("/api/decode/{name}", summary="具名 tokenizer 解码")
    def decode_named(name: str, request: IdsRequest) -> dict[str, Any]:
        return forge_instance.decode_named(require_named(name), request.ids).to_dict()

    @app.get("/health", summary="健康检查")
    def health_check() -> dict[str, Any]:
        """健康检查端点，返回服务状态和各后端加载状态。"""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now().isoformat(),
            **forge_instance.stats(),
        }

    return app
