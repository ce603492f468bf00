"""
FastAPI应用主入口 - 设备台账参考后端

以本地 JSON 持久化的实体仓库对外提供 /api 资源接口，
作为远程持久化策略的服务端。
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import RequestIDMiddleware, LoggingMiddleware
from api.routes import auth, equipment, logs, users
from application.services.entity_store import EntityStore
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from infrastructure.persistence import build_local_adapter


configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 服务端自身总是本地落盘，避免指向另一个远程后端
    store = EntityStore(build_local_adapter(settings.persistence))
    await store.initialize()
    app.state.store = store
    logger.info(
        "store_initialized",
        base_path=settings.persistence.local_base_path,
        users=len(store.users),
        equipment=len(store.equipment),
        logs=len(store.logs),
    )
    yield
    await store.close()
    logger.info("application_shutdown", message="Application shutdown")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="矿山设备台账与维修日志管理",
    )

    # 后添加的中间件在外层：RequestID 包在日志中间件外面，先生成 request_id
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for module in (users, equipment, logs, auth):
        app.include_router(module.router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health_check():
        """健康检查端点"""
        return {"status": "healthy", "version": settings.VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
