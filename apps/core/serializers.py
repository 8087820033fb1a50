"""
Serializers for authentication, users and workflow settings.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .capabilities import get_user_capabilities, get_user_roles
from .models import POST_TYPE_MODES, PendingRevisionsSettings, default_notification_messages

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User with roles and capabilities."""

    roles = serializers.SerializerMethodField()
    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'is_active',
            'date_joined',
            'last_login',
            'roles',
            'capabilities',
        ]
        read_only_fields = fields

    def get_roles(self, obj):
        return get_user_roles(obj)

    def get_capabilities(self, obj):
        return get_user_capabilities(obj)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Token serializer that adds the user's roles to the token and the
    user record to the response.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['roles'] = get_user_roles(user)
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data


class PendingRevisionsSettingsSerializer(serializers.ModelSerializer):
    """Workflow settings; PATCH merges notification messages."""

    last_modified_by_username = serializers.CharField(
        source='last_modified_by.username',
        read_only=True,
        allow_null=True
    )

    class Meta:
        model = PendingRevisionsSettings
        fields = [
            'id',
            'post_type_modes',
            'enable_email_notifications',
            'enable_revision_analytics',
            'auto_cleanup_old_revisions',
            'revision_retention_days',
            'notification_messages',
            'last_modified_by_username',
            'updated_at',
        ]
        read_only_fields = ['id', 'last_modified_by_username', 'updated_at']

    def validate_post_type_modes(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object of post type to mode.")
        for post_type, mode in value.items():
            if mode not in POST_TYPE_MODES:
                raise serializers.ValidationError(
                    f"Invalid mode '{mode}' for post type '{post_type}'. "
                    f"Choose from: {', '.join(POST_TYPE_MODES)}"
                )
        return value

    def validate_revision_retention_days(self, value):
        if value < 1:
            raise serializers.ValidationError("Retention must be at least one day.")
        return value

    def validate_notification_messages(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object of message key to text.")
        allowed = set(default_notification_messages())
        unknown = set(value) - allowed
        if unknown:
            raise serializers.ValidationError(f"Unknown message keys: {', '.join(sorted(unknown))}")
        merged = dict(self.instance.notification_messages if self.instance else {})
        merged.update({key: str(text) for key, text in value.items()})
        return merged
