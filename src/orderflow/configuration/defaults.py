"""Business-rule keys and the defaults used when a key is not configured."""

DISCOUNT_VIP_PERCENT = "discount.vip.percent"
DISCOUNT_WHOLESALE_PERCENT = "discount.wholesale.percent"
DISCOUNT_CORPORATE_PERCENT = "discount.corporate.percent"
BULK_DISCOUNT_THRESHOLD = "order.bulk.discount.threshold"
BULK_DISCOUNT_PERCENT = "order.bulk.discount.percent"
TAX_RATE_PERCENT = "tax.rate.percent"
SHIPPING_FREE_THRESHOLD = "shipping.free.threshold"
SHIPPING_STANDARD_COST = "shipping.standard.cost"
SHIPPING_EXPRESS_COST = "shipping.express.cost"
ORDER_MAX_ITEMS = "order.max.items"
ORDER_MAX_QUANTITY_PER_ITEM = "order.max.quantity.per.item"
ORDER_DEFAULT_STATUS = "order.default.status"
ORDER_CANCELLED_STATUS = "order.cancelled.status"
ORDER_COMPLETED_STATUS = "order.completed.status"
SCHEDULER_SOURCE_STATUS = "scheduler.source.status"
SCHEDULER_TARGET_STATUS = "scheduler.target.status"
SCHEDULER_INTERVAL_SECONDS = "scheduler.interval.seconds"
SCHEDULER_RETRY_ATTEMPTS = "scheduler.retry.attempts"
SCHEDULER_RETRY_INITIAL_DELAY = "scheduler.retry.initial.delay.seconds"
SCHEDULER_RETRY_MAX_DELAY = "scheduler.retry.max.delay.seconds"
LOYALTY_POINTS_PER_DOLLAR = "loyalty.points.per.dollar"

# key -> (default, param type, category, description)
DEFAULTS = {
    DISCOUNT_VIP_PERCENT: (15.0, "DOUBLE", "PRICING", "Discount percentage for VIP customers"),
    DISCOUNT_WHOLESALE_PERCENT: (10.0, "DOUBLE", "PRICING", "Discount percentage for wholesale customers"),
    DISCOUNT_CORPORATE_PERCENT: (20.0, "DOUBLE", "PRICING", "Discount percentage for corporate customers"),
    BULK_DISCOUNT_THRESHOLD: (10, "INTEGER", "PRICING", "Total quantity at which the bulk discount applies"),
    BULK_DISCOUNT_PERCENT: (5.0, "DOUBLE", "PRICING", "Additional discount percentage for bulk orders"),
    TAX_RATE_PERCENT: (10.0, "DOUBLE", "TAX", "Tax rate applied after discounts"),
    SHIPPING_FREE_THRESHOLD: (100.00, "DOUBLE", "SHIPPING", "Discounted subtotal that ships for free"),
    SHIPPING_STANDARD_COST: (10.00, "DOUBLE", "SHIPPING", "Standard shipping cost"),
    SHIPPING_EXPRESS_COST: (25.00, "DOUBLE", "SHIPPING", "Express shipping cost for priority orders"),
    ORDER_MAX_ITEMS: (100, "INTEGER", "ORDER", "Maximum number of line items per order"),
    ORDER_MAX_QUANTITY_PER_ITEM: (10000, "INTEGER", "ORDER", "Maximum quantity per line item"),
    ORDER_DEFAULT_STATUS: ("PENDING", "STRING", "WORKFLOW", "Status assigned to new orders"),
    ORDER_CANCELLED_STATUS: ("CANCELLED", "STRING", "WORKFLOW", "Status used when an order is cancelled"),
    ORDER_COMPLETED_STATUS: ("COMPLETED", "STRING", "WORKFLOW", "Status an order ends in once fulfilled"),
    SCHEDULER_SOURCE_STATUS: ("PENDING", "STRING", "SCHEDULER", "Status swept by the batch advancement job"),
    SCHEDULER_TARGET_STATUS: ("PROCESSING", "STRING", "SCHEDULER", "Status the batch job advances orders to"),
    SCHEDULER_INTERVAL_SECONDS: (300, "INTEGER", "SCHEDULER", "Seconds between batch advancement sweeps"),
    SCHEDULER_RETRY_ATTEMPTS: (3, "INTEGER", "SCHEDULER", "Attempts per sweep on transient failure"),
    SCHEDULER_RETRY_INITIAL_DELAY: (1.0, "DOUBLE", "SCHEDULER", "First retry delay in seconds"),
    SCHEDULER_RETRY_MAX_DELAY: (5.0, "DOUBLE", "SCHEDULER", "Upper bound on the retry delay in seconds"),
    LOYALTY_POINTS_PER_DOLLAR: (1, "INTEGER", "LOYALTY", "Loyalty points earned per whole currency unit"),
}


def default_for(key):
    entry = DEFAULTS.get(key)
    return entry[0] if entry else None
