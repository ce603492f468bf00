"""
用户资源路由
"""
from typing import Any

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_store
from application.dto import MessageDTO
from application.services.entity_store import EntityStore
from domain.common.exceptions import UserNotFoundException, UsernameAlreadyExistsException

router = APIRouter(prefix="/users", tags=["用户"])


@router.get("", summary="用户列表")
async def list_users(store: EntityStore = Depends(get_store)) -> list[dict[str, Any]]:
    return [u.to_dict() for u in store.users]


@router.post("", summary="新增用户", status_code=201)
async def create_user(
    record: dict[str, Any] = Body(...),
    store: EntityStore = Depends(get_store),
) -> dict[str, Any]:
    """按原样写入；注册流程的待审核/普通员工约束由客户端负责"""
    username = str(record.get("username", ""))
    if not await store.add_user(record):
        raise UsernameAlreadyExistsException(username)
    return store.get_user(username).to_dict()


@router.put("/{username}", summary="更新用户")
async def update_user(
    username: str,
    updates: dict[str, Any] = Body(...),
    store: EntityStore = Depends(get_store),
) -> dict[str, Any]:
    if not await store.update_user(username, updates):
        raise UserNotFoundException(username)
    return store.get_user(username).to_dict()


@router.delete("/{username}", summary="删除用户")
async def delete_user(username: str, store: EntityStore = Depends(get_store)) -> MessageDTO:
    if not await store.delete_user(username):
        raise UserNotFoundException(username)
    return MessageDTO(message="deleted")
