HOURS_PER_DAY = 24

DEFAULT_REGION = "ap-south-1"
DEFAULT_TENANT_ID = "tenant_1"

DEFAULT_CANCEL_WINDOW_HRS = 24
DEFAULT_REFUND_PERCENTAGE = 80
DEFAULT_GPS_RADIUS_METERS = 200
DEFAULT_CHECK_IN_WINDOW_MINS = 15
DEFAULT_NO_SHOW_PENALTY = 10

ENTRY_PASS_PREFIX = "ENTRY"
PAYMENT_REF_PREFIX = "PAY"
REFUND_REF_PREFIX = "REFUND"
NO_SHOW_REF_PREFIX = "NOSHOW"

# DynamoDB single-table logical tables
RESOURCES_TABLE = "resources"
RATE_CARDS_TABLE = "rate_cards"
BOOKINGS_TABLE = "bookings"
TRANSACTIONS_TABLE = "transactions"
POLICIES_TABLE = "policies"
TENANTS_TABLE = "tenants"
SLOTS_TABLE = "slots"
