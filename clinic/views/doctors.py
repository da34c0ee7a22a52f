from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.services.doctors import list_doctors

DOCTORS_CACHE_PREFIX = 'doctors:'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors(request):
    """Return the doctor directory used by the booking form.
    Query params:
      - q: optional search (name / specialization contains)
      - specialization: exact specialization
      - page, limit: pagination (optional)
    """
    q = (request.query_params.get('q') or '').strip() or None
    specialization = (request.query_params.get('specialization') or '').strip() or None
    try:
        page = int(request.query_params.get('page') or 1)
        limit = int(request.query_params.get('limit') or 50)
    except ValueError:
        return Response({'ok': False, 'detail': 'Invalid pagination parameters'}, status=400)

    cache_key = f"{DOCTORS_CACHE_PREFIX}q={q or ''}:s={specialization or ''}:p={page}:l={limit}"
    cached = cache.get(cache_key)
    if cached:
        return Response(cached)

    data, total = list_doctors(q=q, specialization=specialization, page=page, limit=limit)
    payload = {'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': limit}}
    cache.set(cache_key, payload, 300)
    return Response(payload)
