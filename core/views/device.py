from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.device import format_device


@api_view(['GET'])
def device_info(request):
    """Classification the middleware computed for this client."""
    return Response(format_device(request.device, request.tablet_mode))
