from .setup import setup_observability
from .metrics import (
    eshop_orders_created_total,
    eshop_order_transitions_total,
    eshop_inventory_tickets_total,
    eshop_token_requests_total,
    eshop_seed_actions_total,
)
