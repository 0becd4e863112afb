import logging

from django.conf import settings
from django.core.mail import send_mass_mail
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response

from styleswap.core.permissions import IsAdminRole
from styleswap.core.utils import create_audit_log
from .models import Subscriber
from .serializers import SubscriberSerializer, SubscribeSerializer, NewsletterSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def subscribe(request):
    """Public newsletter sign-up"""
    serializer = SubscribeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']

    if Subscriber.objects.filter(email=email).exists():
        return Response({'error': 'Email is already subscribed'}, status=status.HTTP_400_BAD_REQUEST)

    subscriber = Subscriber.objects.create(email=email)
    logger.info(f"New newsletter subscriber {email}")
    create_audit_log(
        request=request,
        action='subscribe',
        model_name='Subscriber',
        object_id=str(subscriber.id),
        object_reference=email
    )
    return Response(
        {'message': 'Successfully subscribed', 'subscriber': SubscriberSerializer(subscriber).data},
        status=status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def subscriber_list(request):
    """All subscribers, newest first"""
    queryset = Subscriber.objects.all().order_by('-subscribed_at', '-id')
    active = request.query_params.get('active')
    if active is not None and active != '':
        queryset = queryset.filter(is_active=active.lower() in ('true', '1', 'yes'))
    return Response(SubscriberSerializer(queryset, many=True).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def subscriber_delete(request, email):
    subscriber = get_object_or_404(Subscriber, email=email.strip().lower())
    subscriber_id = subscriber.id
    subscriber.delete()
    create_audit_log(
        request=request,
        action='unsubscribe',
        model_name='Subscriber',
        object_id=str(subscriber_id),
        object_reference=email
    )
    return Response({'message': 'Subscriber removed'}, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def send_newsletter(request):
    """Mail a newsletter to every active subscriber"""
    serializer = NewsletterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    subject = serializer.validated_data['subject']
    message = serializer.validated_data['message']

    recipients = list(Subscriber.objects.filter(is_active=True).values_list('email', flat=True))
    if not recipients:
        return Response({'message': 'No active subscribers', 'sent': 0})

    # One message per subscriber
    messages = [(subject, message, settings.DEFAULT_FROM_EMAIL, [email]) for email in recipients]
    sent = send_mass_mail(messages, fail_silently=False)

    logger.info(f"Newsletter '{subject}' sent to {sent} subscribers by {request.user.email}")
    create_audit_log(
        request=request,
        action='newsletter_send',
        model_name='Subscriber',
        object_id='newsletter',
        object_name=subject,
        changes={'sent': sent}
    )
    return Response({'message': f'Newsletter sent to {sent} subscribers', 'sent': sent})
