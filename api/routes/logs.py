"""
维修日志资源路由
"""
from typing import Any

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_store
from application.dto import MessageDTO
from application.services.entity_store import EntityStore
from domain.common.exceptions import MaintenanceLogNotFoundException, BusinessException
from shared.codes import BusinessCode

router = APIRouter(prefix="/logs", tags=["维修日志"])


@router.get("", summary="日志列表")
async def list_logs(store: EntityStore = Depends(get_store)) -> list[dict[str, Any]]:
    return [l.to_dict() for l in store.logs]


@router.post("", summary="新增日志", status_code=201)
async def create_log(
    record: dict[str, Any] = Body(...),
    store: EntityStore = Depends(get_store),
) -> dict[str, Any]:
    log = await store.add_log(record)
    if log is None:
        raise BusinessException(code=BusinessCode.STORAGE_ERROR, message="Log not created")
    return log.to_dict()


@router.put("/{log_id}", summary="更新日志")
async def update_log(
    log_id: int,
    record: dict[str, Any] = Body(...),
    store: EntityStore = Depends(get_store),
) -> dict[str, Any]:
    if not await store.update_log({**record, "id": log_id}):
        raise MaintenanceLogNotFoundException(log_id)
    return store.get_log(log_id).to_dict()


@router.delete("/{log_id}", summary="删除日志")
async def delete_log(log_id: int, store: EntityStore = Depends(get_store)) -> MessageDTO:
    if not await store.delete_log(log_id):
        raise MaintenanceLogNotFoundException(log_id)
    return MessageDTO(message="deleted")
