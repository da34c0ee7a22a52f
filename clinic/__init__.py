"""Clinic backend application.

Models, serializers, services and views for appointment booking, payments,
prescriptions, notifications and the push channel used by the dashboards.
"""
