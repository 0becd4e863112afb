import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone

from .models import User, AuditLog
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, UserCreateSerializer, UserUpdateSerializer,
    CustomTokenObtainPairSerializer, AuditLogSerializer
)
from .utils import create_audit_log, get_platform_settings, update_platform_settings

logger = logging.getLogger(__name__)


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    if User.objects.filter(email=serializer.validated_data['email']).exists():
        return Response({'error': 'User already exists'}, status=status.HTTP_409_CONFLICT)

    user = serializer.save()
    logger.info(f"Registered {user.role} account {user.email}")
    create_audit_log(
        request=request,
        user=user,
        action='register',
        model_name='User',
        object_id=str(user.id),
        object_name=user.name,
        object_reference=user.email,
        changes={'role': user.role}
    )

    token = CustomTokenObtainPairSerializer.get_token(user)
    return Response({
        'user': UserSerializer(user).data,
        'access': str(token.access_token),
        'refresh': str(token),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user profile"""
    return Response(UserSerializer(request.user).data)


# User views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    """List all users, newest first"""
    queryset = User.objects.all().order_by('-created_at')

    role = request.query_params.get('role')
    if role:
        queryset = queryset.filter(role=role)

    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter)

    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(email__icontains=search) | Q(shop_name__icontains=search)
        )

    serializer = UserSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)
    is_admin = request.user.is_admin_role
    is_self = request.user.pk == user.pk

    if request.method == 'DELETE':
        if not is_admin:
            return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)
        if is_self:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        user_id, user_email, user_name = user.id, user.email, user.name
        user.delete()
        create_audit_log(
            request=request,
            action='user_delete',
            model_name='User',
            object_id=str(user_id),
            object_name=user_name,
            object_reference=user_email
        )
        return Response({'message': 'User deleted'}, status=status.HTTP_200_OK)

    if not (is_admin or is_self):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    if not is_admin:
        # Only admins may change role or suspension state
        data.pop('role', None)
        data.pop('status', None)

    serializer = UserUpdateSerializer(user, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()

    changed = sorted(k for k in serializer.validated_data.keys() if k != 'password')
    if 'password' in serializer.validated_data and serializer.validated_data['password']:
        changed.append('password')
    create_audit_log(
        request=request,
        action='user_update',
        model_name='User',
        object_id=str(user.id),
        object_name=user.name,
        object_reference=user.email,
        changes={'fields': changed}
    )
    return Response(UserSerializer(user).data)


# Platform settings
@api_view(['GET', 'PUT'])
@permission_classes([AllowAny])
def platform_settings(request):
    """Read platform settings (public) or merge updates into them (Admin)"""
    if request.method == 'GET':
        return Response(get_platform_settings())

    if not (request.user and request.user.is_authenticated):
        return Response({'error': 'Authentication credentials were not provided.'}, status=status.HTTP_401_UNAUTHORIZED)
    if not request.user.is_admin_role:
        return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)
    if not isinstance(request.data, dict) or not request.data:
        return Response({'error': 'No settings provided'}, status=status.HTTP_400_BAD_REQUEST)

    values = dict(request.data.items())
    settings_data = update_platform_settings(values)
    logger.info(f"Platform settings updated by {request.user.email}: {sorted(values)}")
    create_audit_log(
        request=request,
        action='settings_update',
        model_name='Setting',
        object_id='platform',
        object_name='Platform settings',
        changes=values
    )
    return Response(settings_data)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user').all()

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    user_filter = request.query_params.get('user', None)
    if user_filter:
        queryset = queryset.filter(user_id=user_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)
    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})
