"""
设备资源路由
"""
from typing import Any

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_store
from application.dto import MessageDTO
from application.services.entity_store import EntityStore
from domain.common.exceptions import EquipmentNotFoundException, BusinessException
from shared.codes import BusinessCode

router = APIRouter(prefix="/equipment", tags=["设备"])


@router.get("", summary="设备台账")
async def list_equipment(store: EntityStore = Depends(get_store)) -> list[dict[str, Any]]:
    return [e.to_dict() for e in store.equipment]


@router.post("", summary="登记设备", status_code=201)
async def create_equipment(
    record: dict[str, Any] = Body(...),
    store: EntityStore = Depends(get_store),
) -> dict[str, Any]:
    """id 由服务端分配，请求体中的 id 被忽略"""
    equipment = await store.add_equipment(record)
    if equipment is None:
        raise BusinessException(code=BusinessCode.STORAGE_ERROR, message="Equipment not created")
    return equipment.to_dict()


@router.put("/{eq_id}", summary="更新设备")
async def update_equipment(
    eq_id: int,
    record: dict[str, Any] = Body(...),
    store: EntityStore = Depends(get_store),
) -> dict[str, Any]:
    if store.get_equipment(eq_id) is None:
        raise EquipmentNotFoundException(eq_id)
    await store.update_equipment({**record, "id": eq_id})
    return store.get_equipment(eq_id).to_dict()


@router.delete("/{eq_id}", summary="删除设备（级联删除日志）")
async def delete_equipment(eq_id: int, store: EntityStore = Depends(get_store)) -> MessageDTO:
    if store.get_equipment(eq_id) is None:
        raise EquipmentNotFoundException(eq_id)
    await store.delete_equipment(eq_id)
    return MessageDTO(message="deleted")
