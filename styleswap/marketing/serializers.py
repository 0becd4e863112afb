from rest_framework import serializers
from .models import Subscriber


class SubscriberSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subscriber
        fields = ['id', 'email', 'is_active', 'subscribed_at']


class SubscribeSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={
        'required': 'Email is required',
        'blank': 'Email is required',
        'invalid': 'Enter a valid email address',
    })

    def validate_email(self, value):
        return value.strip().lower()


class NewsletterSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=200)
    message = serializers.CharField()
