"""
登录路由
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_store
from application.dto import LoginRequestDTO, LoginResponseDTO
from application.services.entity_store import EntityStore

router = APIRouter(tags=["认证"])


@router.post("/login", summary="用户登录", response_model=LoginResponseDTO)
async def login(payload: LoginRequestDTO, store: EntityStore = Depends(get_store)):
    """
    校验用户名与口令摘要

    失败时仍返回 200 与 `success=false`，不区分口令错误与账号待审核。
    """
    user = await store.verify_credentials(payload.username, payload.passwordHash)
    if user is None:
        return LoginResponseDTO(success=False)
    return LoginResponseDTO(success=True, user=user.to_dict())
