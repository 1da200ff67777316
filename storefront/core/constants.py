"""Application-wide constants.

Centralizes storage keys, shipping policy defaults and the fixed
user-facing messages shared by the stores.
"""

# ============== BACKEND ==============
DEFAULT_API_URL = "http://localhost:5001/api"
DEFAULT_BRAND_NAME = "Akash Crackers"

# ============== DURABLE STORAGE ==============
TOKEN_STORAGE_KEY = "crackers_user_token"
PROFILE_STORAGE_KEY = "crackers_user_profile"
REDIS_KEY_PREFIX = "storefront:"

# ============== SHIPPING ==============
FREE_SHIPPING_THRESHOLD = 2000  # ₹, strictly above is free
STANDARD_SHIPPING_COST = 99

# ============== PAGINATION ==============
ADMIN_ORDERS_PER_PAGE = 10

# ============== ROUTES ==============
ORDER_TRACKING_PATH = "/orders/{order_id}"
LOGIN_PATH = "/login"

# ============== MESSAGES ==============
MSG_LOGIN_TO_ADD = "Please log in to add items."
MSG_LOGIN_TO_MODIFY = "Please log in to modify cart."
MSG_LOGIN_TO_CLEAR = "Please log in to clear cart."
MSG_LOGIN_TO_WISHLIST_ADD = "Please log in to add items to your wishlist."
MSG_LOGIN_TO_WISHLIST_MODIFY = "Please log in to modify your wishlist."
MSG_NOT_LOGGED_IN = "Not logged in"
MSG_INVALID_RESPONSE = "Invalid response data"
MSG_GENERIC_ERROR = "An error occurred"
MSG_SESSION_NOT_SAVED = "Could not save your session on this device."

MSG_CART_EMPTY = "Your cart is empty"
MSG_CONTACT_REQUIRED = "Please enter your email and phone number."
MSG_SHIPPING_REQUIRED = "Please fill in all required address fields."
MSG_FINISH_STEPS_FIRST = "Please complete your contact and shipping details first."
MSG_LOGIN_TO_ORDER = "You must be logged in to place an order."
MSG_COD_FAILED = "Failed to place COD order."
MSG_GATEWAY_CONFIG = "Payment gateway configuration error. Please contact support."
MSG_PAYMENT_INIT_FAILED = "Could not initiate payment. Please try again."
MSG_PAYMENT_CANCELLED = "Payment process was cancelled."
MSG_VERIFY_FAILED = "Payment verification failed. Please contact support."
MSG_ORDER_NOT_FOUND = "Order not found."
