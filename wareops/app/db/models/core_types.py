import enum

class OrderStatus(str, enum.Enum):
    processing = "Processing"
    awaiting_purchase = "Awaiting Purchase"
    partially_fulfilled = "Partially Fulfilled"
    ready_for_issuance = "Ready for Issuance"
    fulfilled = "Fulfilled"
    shipped = "Shipped"
    cancelled = "Cancelled"

class OrderLineStatus(str, enum.Enum):
    issued = "Issued"
    awaiting_purchase = "Awaiting Purchase"
    ready_for_issuance = "Ready for Issuance"
    fulfilled = "Fulfilled"

class BackorderStatus(str, enum.Enum):
    pending = "Pending"
    fulfilled = "Fulfilled"

class POStatus(str, enum.Enum):
    pending = "Pending"
    shipped = "Shipped"
    received = "Received"
    cancelled = "Cancelled"
