from kitchen_os.models.staff import StaffMember, StaffRole, HANDOVER_ROLES
from kitchen_os.models.dining_table import DiningTable
from kitchen_os.models.order import Order, OrderStatus, OrderType, OrderPriority, TERMINAL_ORDER_STATUSES
from kitchen_os.models.order_item import OrderItem, ItemStatus
from kitchen_os.models.kot import Kot, KotType
