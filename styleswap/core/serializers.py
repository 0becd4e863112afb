from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from django.contrib.auth.password_validation import validate_password
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'status', 'shop_name', 'shop_address', 'shop_number',
                  'mobile_number', 'sales_handler_mobile', 'gst_number', 'shop_description', 'avatar',
                  'onboarded_at', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'shop_name']


class UserCreateSerializer(serializers.ModelSerializer):
    """Self registration for customers and vendors"""
    password = serializers.CharField(write_only=True, validators=[validate_password])
    role = serializers.ChoiceField(
        choices=[User.ROLE_VENDOR, User.ROLE_CUSTOMER], required=False, default=User.ROLE_CUSTOMER,
        error_messages={'invalid_choice': 'Invalid role'}
    )

    class Meta:
        model = User
        fields = ['email', 'password', 'name', 'role', 'shop_name', 'shop_address', 'shop_number',
                  'mobile_number', 'sales_handler_mobile', 'gst_number', 'shop_description', 'avatar']
        extra_kwargs = {
            # Uniqueness is checked in the view so a duplicate answers 409
            'email': {'validators': []},
        }

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        if attrs.get('role') == User.ROLE_VENDOR and not (attrs.get('shop_name') or '').strip():
            raise serializers.ValidationError({'shop_name': 'Shop name is required for vendors'})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class UserUpdateSerializer(serializers.ModelSerializer):
    """Partial profile update; role and status are stripped for non-admins by the view"""
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['email', 'password', 'name', 'role', 'status', 'shop_name', 'shop_address', 'shop_number',
                  'mobile_number', 'sales_handler_mobile', 'gst_number', 'shop_description', 'avatar',
                  'onboarded_at']
        extra_kwargs = {
            'email': {'validators': []},
        }

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError('Email is already in use')
        return value

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Email/password login returning the user alongside the token pair"""

    def validate(self, attrs):
        attrs[self.username_field] = (attrs.get(self.username_field) or '').strip().lower()
        user = User.objects.filter(email=attrs[self.username_field]).first()
        if user and user.status == User.STATUS_SUSPENDED and user.check_password(attrs.get('password', '')):
            raise AuthenticationFailed('Account is suspended')
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['name'] = user.name
        token['role'] = user.role
        return token


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
