"""
实体仓库（应用服务）- 用户、设备、日志三个集合及当前会话的唯一持有者

所有变更先作用于内存集合，再交给持久化适配器写入；当适配器是权威后端
（远程 API）时，内存集合不直接修改，而是在每次写入后全量重新拉取。
预期内的失败（凭据错误、用户名重复、快照格式错误）以布尔值/None 返回，
存储层故障由适配器记录日志后吞掉，不会抛给调用方。
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Union

from application.ports.persistence import Collection, PersistencePort, SessionPort
from application.services.import_merge import (
    EquipmentInput,
    ImportMode,
    ImportPlan,
    LogInput,
    plan_import,
)
from application.services.snapshot import decode_snapshot, encode_snapshot
from application.utils.csv_table import (
    equipment_records_from_rows,
    log_records_from_rows,
    parse_csv,
    to_csv,
)
from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from domain.common.values import next_id
from domain.equipment.entity import Equipment, EquipmentCategory, EquipmentStatus
from domain.equipment.service import (
    DEFAULT_LEDGER_STATUSES,
    InspectionAlert,
    StatusSummary,
    inspection_alerts,
    latest_equipment,
    search_equipment,
    status_summary,
)
from domain.maintenance.entity import MaintenanceLog
from domain.maintenance.service import lifecycle_history, recent_logs
from domain.user.entity import User, UserStatus
from domain.user.service import UserDomainService

logger = get_logger(__name__)

UserInput = Union[User, Mapping[str, Any]]


@dataclass(frozen=True)
class DashboardSummary:
    """系统概览"""
    status: StatusSummary
    latest_equipment: list[Equipment]
    latest_logs: list[MaintenanceLog]


class EntityStore:
    """实体仓库 - 每个进程/会话构造一次，独占三个集合"""

    def __init__(self, adapter: PersistencePort, session_store: Optional[SessionPort] = None):
        self._adapter = adapter
        self._session_store = session_store
        self._user_service = UserDomainService()
        self._users: list[User] = []
        self._equipment: list[Equipment] = []
        self._logs: list[MaintenanceLog] = []
        self._current_user: Optional[User] = None

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------
    @property
    def users(self) -> list[User]:
        return copy.deepcopy(self._users)

    @property
    def equipment(self) -> list[Equipment]:
        return copy.deepcopy(self._equipment)

    @property
    def logs(self) -> list[MaintenanceLog]:
        return copy.deepcopy(self._logs)

    @property
    def current_user(self) -> Optional[User]:
        return copy.deepcopy(self._current_user)

    def get_user(self, username: str) -> Optional[User]:
        return copy.deepcopy(self._find_user(username))

    def get_equipment(self, eq_id: int) -> Optional[Equipment]:
        idx = self._equipment_index(eq_id)
        return None if idx is None else copy.deepcopy(self._equipment[idx])

    def get_log(self, log_id: int) -> Optional[MaintenanceLog]:
        idx = self._log_index(log_id)
        return None if idx is None else copy.deepcopy(self._logs[idx])

    @property
    def _remote(self) -> bool:
        return self._adapter.authoritative

    def _find_user(self, username: str) -> Optional[User]:
        return self._user_service.find(self._users, username)

    def _equipment_index(self, eq_id: int) -> Optional[int]:
        return next((i for i, e in enumerate(self._equipment) if e.id == eq_id), None)

    def _log_index(self, log_id: int) -> Optional[int]:
        return next((i for i, l in enumerate(self._logs) if l.id == log_id), None)

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        """启动时读取全部集合，并恢复仍然有效的登录会话"""
        await self.refresh()
        if self._session_store is None:
            return
        saved = await self._session_store.load()
        if not saved:
            return
        user = self._find_user(str(saved.get("username", "")))
        if user is not None and user.is_active:
            self._current_user = copy.deepcopy(user)
            logger.info("session_restored", username=user.username)

    async def refresh(self) -> None:
        """全量拉取三个集合；某个集合读取失败时保留内存中的旧值"""
        users = await self._adapter.load_all(Collection.USERS)
        equipment = await self._adapter.load_all(Collection.EQUIPMENT)
        logs = await self._adapter.load_all(Collection.LOGS)
        if users is not None:
            self._users = [User.from_dict(r) for r in users]
        if equipment is not None:
            self._equipment = [Equipment.from_dict(r) for r in equipment]
        if logs is not None:
            self._logs = [MaintenanceLog.from_dict(r) for r in logs]

    async def close(self) -> None:
        await self._adapter.close()

    async def _after_write(self) -> None:
        if self._remote:
            await self.refresh()

    # ------------------------------------------------------------------
    # 会话
    # ------------------------------------------------------------------
    async def verify_credentials(self, username: str, password_hash: str) -> Optional[User]:
        """校验凭据但不改变会话"""
        if self._remote:
            data = await self._adapter.authenticate(username, password_hash)
            return User.from_dict(data) if data else None
        return copy.deepcopy(self._user_service.authenticate(self._users, username, password_hash))

    async def login(self, username: str, password_hash: str) -> bool:
        """用户名、口令摘要匹配且账号已审核才成功；失败不区分原因"""
        user = await self.verify_credentials(username, password_hash)
        if user is None:
            logger.info("login_failed", username=username)
            return False

        self._current_user = copy.deepcopy(user)
        if self._session_store is not None:
            await self._session_store.save(user.to_dict())
        logger.info("login_succeeded", username=username, role=user.role.value)
        return True

    async def logout(self) -> None:
        if self._current_user is not None:
            logger.info("logout", username=self._current_user.username)
        self._current_user = None
        if self._session_store is not None:
            await self._session_store.clear()

    # ------------------------------------------------------------------
    # 用户
    # ------------------------------------------------------------------
    async def register(self, user: UserInput) -> bool:
        """注册：用户名已存在返回 False；新用户一律为待审核的普通员工，不自动登录"""
        candidate = self._user_service.prepare_registration(user)
        if self._find_user(candidate.username) is not None:
            logger.info("register_duplicate_username", username=candidate.username)
            return False
        return await self._insert_user(candidate)

    async def add_user(self, user: UserInput) -> bool:
        """按原样新增用户（种子账号、后端接口），用户名已存在返回 False"""
        candidate = User.from_dict(user.to_dict() if isinstance(user, User) else user)
        if self._find_user(candidate.username) is not None:
            return False
        return await self._insert_user(candidate)

    async def _insert_user(self, user: User) -> bool:
        if not self._remote:
            self._users.append(user)
        created = await self._adapter.create(Collection.USERS, user.to_dict())
        await self._after_write()
        if self._remote and created is None:
            return False
        logger.info("user_created", username=user.username, status=user.status.value)
        return True

    async def update_user(self, username: str, updates: Mapping[str, Any]) -> bool:
        """合并部分字段；用户不存在时不做任何事"""
        user = self._find_user(username)
        if user is None:
            logger.debug("user_update_missing", username=username)
            return False
        updated = copy.deepcopy(user)
        changed = updated.apply_updates(updates)
        if not self._remote:
            self._users[self._users.index(user)] = updated
        await self._adapter.replace(Collection.USERS, username, updated.to_dict())
        await self._after_write()
        if self._current_user is not None and self._current_user.username == username:
            self._current_user = copy.deepcopy(self._find_user(username) or updated)
        logger.info("user_updated", username=username, fields=changed)
        return True

    async def delete_user(self, username: str) -> bool:
        """删除用户；其填写的日志只以 operator 文本引用，保持不变"""
        user = self._find_user(username)
        if user is None:
            return False
        if not self._remote:
            self._users.remove(user)
        await self._adapter.delete(Collection.USERS, username)
        await self._after_write()
        logger.info("user_deleted", username=username)
        return True

    async def approve_user(self, username: str) -> bool:
        return await self.update_user(username, {"status": UserStatus.ACTIVE.value})

    async def toggle_role(self, username: str) -> bool:
        user = self._find_user(username)
        if user is None:
            return False
        toggled = copy.deepcopy(user)
        toggled.toggle_role()
        return await self.update_user(username, {"role": toggled.role.value})

    async def reject_user(self, username: str) -> bool:
        return await self.delete_user(username)

    def pending_users(self) -> list[User]:
        return [copy.deepcopy(u) for u in self._users if u.status == UserStatus.PENDING]

    # ------------------------------------------------------------------
    # 设备
    # ------------------------------------------------------------------
    async def add_equipment(self, fields: EquipmentInput) -> Optional[Equipment]:
        """登记新设备，id = 现有最大 id + 1；远程写入失败时返回 None"""
        data = fields.to_dict() if isinstance(fields, Equipment) else dict(fields)
        data.setdefault("status", EquipmentStatus.ACTIVE.value)
        data["id"] = next_id(e.id for e in self._equipment)
        equipment = Equipment.from_dict(data)

        if not self._remote:
            self._equipment.append(equipment)
        created = await self._adapter.create(Collection.EQUIPMENT, equipment.to_dict())
        await self._after_write()

        if self._remote:
            if created is None:
                return None
            equipment = Equipment.from_dict(created)
        logger.info("equipment_created", eq_id=equipment.id, name=equipment.name)
        return copy.deepcopy(equipment)

    async def update_equipment(self, equipment: EquipmentInput) -> bool:
        """按 id 整条替换；id 不存在时静默忽略（返回 False）"""
        updated = equipment if isinstance(equipment, Equipment) else Equipment.from_dict(equipment)
        idx = self._equipment_index(updated.id)
        if idx is None:
            logger.debug("equipment_update_missing", eq_id=updated.id)
            return False
        updated = copy.deepcopy(updated)
        if not self._remote:
            self._equipment[idx] = updated
        await self._adapter.replace(Collection.EQUIPMENT, updated.id, updated.to_dict())
        await self._after_write()
        logger.info("equipment_updated", eq_id=updated.id, status=updated.status.value)
        return True

    async def delete_equipment(self, eq_id: int) -> None:
        """删除设备，并级联删除引用该设备的全部日志"""
        existed = self._equipment_index(eq_id) is not None
        orphans = [l.id for l in self._logs if l.eq_id == eq_id]
        if not self._remote:
            self._equipment = [e for e in self._equipment if e.id != eq_id]
            self._logs = [l for l in self._logs if l.eq_id != eq_id]
        for log_id in orphans:
            await self._adapter.delete(Collection.LOGS, log_id)
        if existed:
            await self._adapter.delete(Collection.EQUIPMENT, eq_id)
        await self._after_write()
        logger.info("equipment_deleted", eq_id=eq_id, cascaded_logs=len(orphans))

    # ------------------------------------------------------------------
    # 日志
    # ------------------------------------------------------------------
    async def add_log(self, fields: LogInput) -> Optional[MaintenanceLog]:
        """新增日志后按 log_type 自动改设备状态（每次都执行，即使状态已相同）"""
        data = fields.to_dict() if isinstance(fields, MaintenanceLog) else dict(fields)
        data["id"] = next_id(l.id for l in self._logs)
        log = MaintenanceLog.from_dict(data)

        if not self._remote:
            self._logs.append(log)
        created = await self._adapter.create(Collection.LOGS, log.to_dict())
        await self._after_write()

        if self._remote:
            if created is None:
                return None
            log = MaintenanceLog.from_dict(created)
        logger.info("log_created", log_id=log.id, eq_id=log.eq_id, log_type=log.log_type)
        await self._apply_derived_status(log)
        return copy.deepcopy(log)

    async def update_log(self, log: LogInput) -> bool:
        """按 id 替换，并按新的 log_type 重新推导设备状态；id 不存在时忽略"""
        updated = log if isinstance(log, MaintenanceLog) else MaintenanceLog.from_dict(log)
        idx = self._log_index(updated.id)
        if idx is None:
            logger.debug("log_update_missing", log_id=updated.id)
            return False
        updated = copy.deepcopy(updated)
        if not self._remote:
            self._logs[idx] = updated
        await self._adapter.replace(Collection.LOGS, updated.id, updated.to_dict())
        await self._after_write()
        await self._apply_derived_status(updated)
        return True

    async def delete_log(self, log_id: int) -> bool:
        if self._log_index(log_id) is None:
            return False
        if not self._remote:
            self._logs = [l for l in self._logs if l.id != log_id]
        await self._adapter.delete(Collection.LOGS, log_id)
        await self._after_write()
        logger.info("log_deleted", log_id=log_id)
        return True

    async def _apply_derived_status(self, log: MaintenanceLog) -> None:
        # 不检查当前状态，报废设备同样会被改写
        status = log.derived_equipment_status()
        if status is None:
            return
        equipment = self.get_equipment(log.eq_id)
        if equipment is None:
            logger.warning("log_references_unknown_equipment", log_id=log.id, eq_id=log.eq_id)
            return
        logger.info(
            "equipment_status_derived",
            eq_id=equipment.id,
            previous=equipment.status.value,
            status=status.value,
            log_id=log.id,
        )
        await self.update_equipment(equipment.with_status(status))

    # ------------------------------------------------------------------
    # 导入与快照
    # ------------------------------------------------------------------
    async def import_data(
        self,
        equipment_batch: Iterable[EquipmentInput],
        log_batch: Iterable[LogInput],
        mode: ImportMode | str = ImportMode.APPEND,
    ) -> ImportPlan:
        """批量导入设备与日志，append 按名称合并设备，overwrite 整体替换"""
        plan = plan_import(self._equipment, self._logs, equipment_batch, log_batch, mode)
        if not self._remote:
            self._equipment = plan.equipment
            self._logs = plan.logs

        if plan.mode is ImportMode.OVERWRITE:
            await self._adapter.replace_all(Collection.EQUIPMENT, [e.to_dict() for e in plan.equipment])
            await self._adapter.replace_all(Collection.LOGS, [l.to_dict() for l in plan.logs])
        else:
            for eq in plan.updated_equipment:
                await self._adapter.replace(Collection.EQUIPMENT, eq.id, eq.to_dict())
            for eq in plan.created_equipment:
                await self._adapter.create(Collection.EQUIPMENT, eq.to_dict())
            for log in plan.created_logs:
                await self._adapter.create(Collection.LOGS, log.to_dict())
        await self._after_write()

        logger.info(
            "data_imported",
            mode=plan.mode.value,
            equipment_created=len(plan.created_equipment),
            equipment_updated=len(plan.updated_equipment),
            logs_created=len(plan.created_logs),
            equipment_total=len(plan.equipment),
            logs_total=len(plan.logs),
        )
        return plan

    async def import_csv(
        self,
        equipment_csv: str = "",
        logs_csv: str = "",
        mode: ImportMode | str = ImportMode.APPEND,
        today: Optional[date] = None,
    ) -> ImportPlan:
        """从 CSV 文本批量导入（表格导出的台账/日志），缺失字段按导入默认值补全"""
        equipment_batch = equipment_records_from_rows(parse_csv(equipment_csv)) if equipment_csv else []
        log_batch = log_records_from_rows(parse_csv(logs_csv), today=today) if logs_csv else []
        return await self.import_data(equipment_batch, log_batch, mode)

    def export_csv(self, collection: Collection | str) -> str:
        """导出设备台账或维修日志为 CSV；用户表含口令摘要，不提供导出"""
        try:
            collection = Collection(collection)
        except ValueError:
            raise DomainValidationException(
                f"Unknown collection: {collection}", field="collection"
            ) from None
        if collection is Collection.EQUIPMENT:
            return to_csv(e.to_dict() for e in self._equipment)
        if collection is Collection.LOGS:
            return to_csv(l.to_dict() for l in self._logs)
        raise DomainValidationException(
            "Users cannot be exported as CSV",
            field="collection",
            details={"allowed": [Collection.EQUIPMENT.value, Collection.LOGS.value]},
        )

    def get_full_state(self) -> str:
        """导出全量快照（JSON 文本）"""
        return encode_snapshot(
            users=[u.to_dict() for u in self._users],
            equipment=[e.to_dict() for e in self._equipment],
            logs=[l.to_dict() for l in self._logs],
        )

    async def load_full_state(self, document: str | bytes) -> bool:
        """从快照恢复：解析失败返回 False 且不做任何修改；
        文档中出现的集合整体替换，未出现的集合保持不变"""
        snapshot = decode_snapshot(document)
        if snapshot is None:
            return False

        # 先把所有集合转换完，再统一写入，避免只恢复了一部分
        users = equipment = logs = None
        if snapshot.users is not None:
            users = [User.from_dict(r) for r in snapshot.users]
        if snapshot.equipment is not None:
            equipment = [Equipment.from_dict(r) for r in snapshot.equipment]
        if snapshot.logs is not None:
            logs = [MaintenanceLog.from_dict(r) for r in snapshot.logs]

        if not self._remote:
            if users is not None:
                self._users = users
            if equipment is not None:
                self._equipment = equipment
            if logs is not None:
                self._logs = logs

        restored: list[str] = []
        for collection, entities in (
            (Collection.USERS, users),
            (Collection.EQUIPMENT, equipment),
            (Collection.LOGS, logs),
        ):
            if entities is None:
                continue
            await self._adapter.replace_all(collection, [e.to_dict() for e in entities])
            restored.append(collection.value)
        await self._after_write()

        logger.info("snapshot_restored", collections=restored, captured_at=str(snapshot.timestamp))
        return True

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------
    def inspection_alerts(
        self,
        within_days: Optional[int] = None,
        today: Optional[date] = None,
        category: Optional[EquipmentCategory] = None,
        team: Optional[str] = None,
    ) -> list[InspectionAlert]:
        days = settings.INSPECTION_ALERT_DAYS if within_days is None else within_days
        return inspection_alerts(self.equipment, days, today=today, category=category, team=team)

    def equipment_history(self, eq_id: int) -> list[MaintenanceLog]:
        return lifecycle_history(self.logs, eq_id)

    def search_equipment(
        self,
        keyword: str = "",
        statuses: Iterable[EquipmentStatus] = DEFAULT_LEDGER_STATUSES,
        category: Optional[EquipmentCategory] = None,
    ) -> list[Equipment]:
        return search_equipment(self.equipment, keyword, statuses, category)

    def special_equipment(self) -> list[Equipment]:
        return [e for e in self.equipment if e.is_special]

    def dashboard_summary(self, limit: Optional[int] = None) -> DashboardSummary:
        limit = settings.RECENT_ITEMS_LIMIT if limit is None else limit
        equipment = self.equipment
        return DashboardSummary(
            status=status_summary(equipment),
            latest_equipment=latest_equipment(equipment, limit),
            latest_logs=recent_logs(self.logs, limit),
        )
