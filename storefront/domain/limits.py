# storefront/domain/limits.py
MIN_QUANTITY = 1
MAX_QUANTITY = 100

# EU shoe sizes
MIN_SIZE = 36
MAX_SIZE = 50
