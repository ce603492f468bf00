from .entity import (
    Equipment,
    EquipmentCategory,
    EquipmentStatus,
    ElectricalEquipment,
    MechanicalEquipment,
)

__all__ = [
    "Equipment",
    "EquipmentCategory",
    "EquipmentStatus",
    "ElectricalEquipment",
    "MechanicalEquipment",
]
