from .entity import MaintenanceLog, FAULT_REPAIR_MARKER, REPAIR_COMPLETE_MARKER

__all__ = ["MaintenanceLog", "FAULT_REPAIR_MARKER", "REPAIR_COMPLETE_MARKER"]
