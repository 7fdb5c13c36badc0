from django.conf import settings
from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.serializers import CreatePaymentSerializer
from payments.services.orchestrator import get_payment_orchestrator
from payments.services.webhooks import get_webhook_reconciler


class _CreatePaymentView(APIView):
    permission_classes = [permissions.AllowAny]
    payment_method = None

    def post(self, request):
        serializer = CreatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        orchestrator = get_payment_orchestrator()
        create = getattr(orchestrator, self.payment_method)
        result = create(
            serializer.validated_data["booking_id"],
            serializer.validated_data["source_id"],
        )
        return Response(result.as_dict())


class CreateDepositPaymentView(_CreatePaymentView):
    payment_method = "create_deposit_payment"


class CreateFinalPaymentView(_CreatePaymentView):
    payment_method = "create_final_payment"


class PaymentWebhookView(APIView):
    """Receive signed payment events from the gateway."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        payload = request.body
        signature = request.headers.get(settings.PAYMENT_WEBHOOK_SIGNATURE_HEADER)
        stripe_signature = request.META.get("HTTP_STRIPE_SIGNATURE")
        get_webhook_reconciler().handle(payload, signature, stripe_signature)
        return Response({"received": True})
