"""
Utility functions for catalog operations
"""
LOW_STOCK_THRESHOLD = 3

STOCK_OUT = 'Out of Stock'
STOCK_LOW = 'Low Stock'
STOCK_IN = 'In Stock'


def get_stock_status(available_quantity):
    """Label for the number of units currently available to rent"""
    available = available_quantity or 0
    if available <= 0:
        return STOCK_OUT
    if available < LOW_STOCK_THRESHOLD:
        return STOCK_LOW
    return STOCK_IN


def clamp_availability(current, delta, stock_quantity):
    """Apply ``delta`` to ``current`` keeping the result within [0, stock_quantity]"""
    return max(0, min(stock_quantity, current + delta))


def shift_availability_for_stock_change(product, new_stock):
    """
    Availability that follows a stock change: the difference between the old and
    new stock is applied to the available count, clamped to the new stock.
    """
    delta = new_stock - product.stock_quantity
    return clamp_availability(product.available_quantity, delta, new_stock)


def match_size(sizes, size):
    """The entry of ``sizes`` equal to ``size`` ignoring case, or None"""
    wanted = str(size).strip().lower()
    for offered in sizes or []:
        if str(offered).strip().lower() == wanted:
            return offered
    return None
