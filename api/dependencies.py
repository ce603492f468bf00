"""
API依赖项
"""
from fastapi import Request

from application.services.entity_store import EntityStore


async def get_store(request: Request) -> EntityStore:
    """应用启动时创建的实体仓库（见 main.lifespan）"""
    return request.app.state.store
