from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRole(BasePermission):
    """Allows access only to users with the Admin role"""
    message = 'Admin access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_role)


class IsVendor(BasePermission):
    """Allows access to vendors (Sub-Admin) and Admins"""
    message = 'Vendor access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_vendor_role or user.is_admin_role))


def can_manage_product(user, product):
    """Owner of the product or an Admin"""
    return user.is_admin_role or product.sub_admin_id == user.id


class IsVendorOrReadOnly(IsVendor):
    """Anyone may read; writes need a vendor or Admin"""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)

