from rest_framework import serializers


class PaymentOrderSerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(min_value=1)


class PaymentVerifySerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(max_length=64)
    razorpay_payment_id = serializers.CharField(max_length=64)
    razorpay_signature = serializers.CharField(max_length=128)
