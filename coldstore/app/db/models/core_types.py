import enum

class Role(str, enum.Enum):
    super_admin = "SUPER_ADMIN"
    admin = "ADMIN"
    employee = "EMPLOYEE"

class TemperatureZone(str, enum.Enum):
    frozen = "FROZEN"
    chilled = "CHILLED"
    ambient = "AMBIENT"

class MovementType(str, enum.Enum):
    receipt = "RECEIPT"
    pick = "PICK"
    adjustment = "ADJUSTMENT"
    transfer = "TRANSFER"
    return_ = "RETURN"
    disposal = "DISPOSAL"

class InboundStatus(str, enum.Enum):
    pending = "PENDING"
    receiving = "RECEIVING"
    completed = "COMPLETED"
    cancelled = "CANCELLED"

class OutboundStatus(str, enum.Enum):
    pending = "PENDING"
    picking = "PICKING"
    packed = "PACKED"
    dispatched = "DISPATCHED"
    cancelled = "CANCELLED"


# Outbound orders still holding their requested quantities
RESERVING_STATUSES = {
    OutboundStatus.pending,
    OutboundStatus.picking,
    OutboundStatus.packed,
}

MANAGER_ROLES = (Role.super_admin, Role.admin)
