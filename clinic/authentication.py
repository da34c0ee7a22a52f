"""
Custom authentication backend for token-based auth.

This module defines a subclass of Django REST framework's
``TokenAuthentication`` that the settings reference by import path.
Keeping it apart from the views avoids circular imports when the REST
framework loads authentication classes during initialisation.  The
WebSocket side resolves the same tokens through
``clinic.realtime.auth``.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Inactive users are rejected by the base class.
    """

    keyword = 'Token'
