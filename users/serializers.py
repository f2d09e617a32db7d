# users/serializers.py
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import User, WalletTransaction, LocationHistory
from .utils import normalize_phone


def _validate_phone_value(value):
    if not value:
        return ''
    try:
        return normalize_phone(value)
    except ValueError as e:
        raise serializers.ValidationError(str(e))


class RegisterSerializer(serializers.Serializer):
    """
    Register a customer or worker account
    """
    name = serializers.CharField(min_length=2, max_length=50)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)
    role = serializers.ChoiceField(choices=['user', 'worker'], default='user')

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("User with this email already exists")
        return value

    def validate_phone(self, value):
        return _validate_phone_value(value)

    def create(self, validated_data):
        return User.objects.create_user(
            validated_data['email'],
            validated_data['password'],
            role=validated_data.get('role', 'user'),
            name=validated_data['name'],
            phone=validated_data['phone'],
        )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        return value.lower()


class UserSerializer(serializers.ModelSerializer):
    profile_image_url = serializers.SerializerMethodField()
    has_worker_profile = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'phone', 'role', 'is_active', 'wallet',
            'profile_image_url', 'address', 'city', 'state', 'pincode',
            'latitude', 'longitude', 'location_captured_at',
            'has_worker_profile', 'created_at',
        ]
        read_only_fields = fields

    def get_profile_image_url(self, obj):
        if not obj.profile_image:
            return None
        request = self.context.get('request')
        if request:
            return request.build_absolute_uri(obj.profile_image.url)
        return obj.profile_image.url

    def get_has_worker_profile(self, obj):
        return hasattr(obj, 'worker_profile')


class UserBriefSerializer(serializers.ModelSerializer):
    """Embedded in bookings/reviews"""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone', 'profile_image']
        read_only_fields = fields


class UpdateDetailsSerializer(serializers.ModelSerializer):
    """
    name / email / phone only, role is never writable
    """
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['name', 'email', 'phone']
        extra_kwargs = {
            'name': {'required': False},
            'email': {'required': False},
            'phone': {'required': False},
        }

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("Email is already in use")
        return value

    def validate_phone(self, value):
        return _validate_phone_value(value)

    def validate(self, attrs):
        if 'role' in self.initial_data:
            raise serializers.ValidationError({'role': "Role cannot be changed"})
        return attrs


class ProfileUpdateSerializer(UpdateDetailsSerializer):

    class Meta(UpdateDetailsSerializer.Meta):
        fields = ['name', 'phone', 'address', 'city', 'state', 'pincode']
        extra_kwargs = {f: {'required': False} for f in fields}


class UpdatePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(min_length=6, max_length=128, write_only=True)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value

    def validate(self, attrs):
        if attrs['current_password'] == attrs['new_password']:
            raise serializers.ValidationError({'new_password': "New password must differ from the current one"})
        try:
            validate_password(attrs['new_password'], self.context['request'].user)
        except DjangoValidationError as e:
            raise serializers.ValidationError({'new_password': list(e.messages)})
        return attrs


class LocationUpdateSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    accuracy = serializers.FloatField(required=False, allow_null=True, min_value=0)
    address = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    pincode = serializers.CharField(max_length=10, required=False, allow_blank=True, default='')


class LocationHistorySerializer(serializers.ModelSerializer):

    class Meta:
        model = LocationHistory
        fields = ['id', 'latitude', 'longitude', 'address', 'accuracy', 'captured_at']


class WalletTransactionSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(source='booking.id', read_only=True, default=None)

    class Meta:
        model = WalletTransaction
        fields = ['id', 'amount', 'type', 'description', 'booking_id', 'balance_after', 'created_at']
