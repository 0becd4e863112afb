"""Utility functions for audit logging and platform settings"""
import json
import logging
from decimal import Decimal, InvalidOperation

from .models import AuditLog, Setting

logger = logging.getLogger(__name__)

# Platform settings and their defaults
DEFAULT_SETTINGS = {
    'maintenance_mode': False,
    'commission_rate': 15,
}


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, order_place, issue_raise, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., product name, order number)
        object_reference: Reference identifier (e.g., order number, issue id)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def get_platform_settings():
    """Stored settings merged over the defaults"""
    result = dict(DEFAULT_SETTINGS)
    for setting in Setting.objects.all():
        try:
            result[setting.key] = json.loads(setting.value)
        except (TypeError, ValueError):
            result[setting.key] = setting.value
    return result


def update_platform_settings(values):
    """Upsert each key of ``values``; returns the merged settings"""
    for key, value in values.items():
        Setting.objects.update_or_create(key=key, defaults={'value': json.dumps(value)})
    return get_platform_settings()


def get_commission_rate():
    """Commission percentage taken on rental fees"""
    raw = get_platform_settings().get('commission_rate', DEFAULT_SETTINGS['commission_rate'])
    try:
        rate = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        logger.warning(f"Invalid commission_rate setting {raw!r}, using default")
        rate = Decimal(str(DEFAULT_SETTINGS['commission_rate']))
    return rate
