from prometheus_client import Counter, Gauge, Histogram


# Vendor Order Metrics
vendor_orders_created_total = Counter(
    "marketplace_vendor_orders_created_total", "Vendor orders created from customer orders", ["vendor_type"]
)
vendor_order_status_changes_total = Counter(
    "marketplace_vendor_order_status_changes_total", "Vendor order status transitions", ["status"]
)
vendors_per_order = Histogram(
    "marketplace_vendors_per_order",
    "Number of vendors a customer order is split across",
    buckets=[1, 2, 3, 5, 8, 13, float("inf")],
)

# Commission Metrics
commissions_recorded_total = Counter(
    "marketplace_commissions_recorded_total", "Commission records created", ["vendor_type", "commission_tier"]
)
commission_amount = Histogram(
    "marketplace_commission_amount",
    "Commission amount distribution",
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, float("inf")],
)
commission_tier_changes_total = Counter(
    "marketplace_commission_tier_changes_total", "Shop commission tier changes", ["from_tier", "to_tier"]
)

# Routing Metrics
routing_decisions_total = Counter(
    "marketplace_routing_decisions_total", "Fulfillment routing decisions", ["outcome"]
)
routing_duration = Histogram("marketplace_routing_seconds", "Fulfillment routing computation time")
routing_rules_applied_total = Counter(
    "marketplace_routing_rules_applied_total", "Routing rules matched during routing", ["action"]
)

# Payout Metrics
payouts_total = Counter("marketplace_payouts_total", "Payouts by resulting status", ["status"])
payout_volume_total = Counter("marketplace_payout_volume_total", "Total amount transferred to vendors", ["currency"])
pending_payouts = Gauge("marketplace_pending_payouts", "Payouts awaiting processing")

# Compliance Metrics
age_verifications_total = Counter(
    "marketplace_age_verifications_total", "Age verification attempts by outcome", ["status", "method"]
)
