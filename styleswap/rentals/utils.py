"""
Rental pricing and status helpers
"""
import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from .models import Order, Issue

TWO_PLACES = Decimal('0.01')


def calculate_rental_days(start_date, end_date):
    """Whole days between the dates, never less than one"""
    return max((end_date - start_date).days, 1)


def calculate_line_amounts(price_per_day, security_deposit, quantity, rental_days):
    """Returns (rental_fee, deposit, subtotal) for one order line"""
    rental_fee = (Decimal(price_per_day) * rental_days * quantity).quantize(TWO_PLACES)
    deposit = (Decimal(security_deposit) * quantity).quantize(TWO_PLACES)
    return rental_fee, deposit, rental_fee + deposit


def calculate_commission(rental_fee_total, commission_rate):
    """Platform share of the rental fees; deposits are not commissioned"""
    return (Decimal(rental_fee_total) * Decimal(commission_rate) / Decimal('100')).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def get_rental_status(status, end_date, today=None):
    """
    Status implied by the calendar: a returned order stays returned, a passed
    end date is overdue, ending today or tomorrow is pending return.
    """
    if status == Order.STATUS_RETURNED:
        return Order.STATUS_RETURNED
    if today is None:
        today = timezone.localdate()
    days_left = (end_date - today).days
    if days_left < 0:
        return Order.STATUS_OVERDUE
    if days_left <= 1:
        return Order.STATUS_PENDING_RETURN
    return Order.STATUS_ACTIVE


def generate_order_number():
    order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
    while Order.objects.filter(order_number=order_number).exists():
        order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
    return order_number


def generate_issue_id():
    issue_id = f"ISS-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:6].upper()}"
    while Issue.objects.filter(issue_id=issue_id).exists():
        issue_id = f"ISS-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:6].upper()}"
    return issue_id
