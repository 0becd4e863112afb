"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_products_cache, invalidate_reports_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

PRODUCT_MODELS = ('Product', 'ProductReview')
REPORT_MODELS = ('Order', 'OrderItem', 'User')


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


# --- Signal Handlers ---

@receiver([post_save, post_delete])
def invalidate_products_cache_signal(sender, instance, **kwargs):
    """Invalidate products cache when products or reviews change"""
    if is_suspended() or sender.__name__ not in PRODUCT_MODELS:
        return
    try:
        # Invalidate after commit so the cache is not refilled with stale rows
        transaction.on_commit(invalidate_products_cache)
    except Exception as e:
        logger.warning(f"Error in invalidate_products_cache signal: {e}")


@receiver([post_save, post_delete])
def invalidate_reports_cache_signal(sender, instance, **kwargs):
    """Invalidate dashboard and vendor sales cache when orders or users change"""
    if is_suspended() or sender.__name__ not in REPORT_MODELS:
        return
    try:
        transaction.on_commit(invalidate_reports_cache)
    except Exception as e:
        logger.warning(f"Error in invalidate_reports_cache signal: {e}")
