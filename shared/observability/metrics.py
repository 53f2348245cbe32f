from prometheus_client import Counter

# Business Metrics
eshop_orders_created_total = Counter(
    "eshop_orders_created_total",
    "Total orders created"
)

eshop_order_transitions_total = Counter(
    "eshop_order_transitions_total",
    "Order status transitions attempted",
    ["transaction_type", "outcome"] # outcome: 'applied', 'rejected'
)

eshop_inventory_tickets_total = Counter(
    "eshop_inventory_tickets_total",
    "Inventory tickets issued",
    ["ticket_type"] # StockIn, StockOut
)

eshop_token_requests_total = Counter(
    "eshop_token_requests_total",
    "Token endpoint requests",
    ["grant_type", "outcome"] # outcome: 'issued' or an OAuth error code
)

eshop_seed_actions_total = Counter(
    "eshop_seed_actions_total",
    "OAuth seeding actions",
    ["kind", "action"] # kind: 'scope', 'application'; action: 'created', 'updated', 'unchanged'
)
