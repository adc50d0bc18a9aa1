import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpResponseRedirect

from core.services.device import detect_device, environment_from_request, is_ipad_user_agent, tablet_mode

logger = logging.getLogger(__name__)


def tablet_may_visit(path: str) -> bool:
    return path in settings.TABLET_ALLOWED_PATHS or path.startswith(settings.TABLET_ALLOWED_PREFIXES)


class DeviceDetectionMiddleware:
    """Attach ``request.device`` / ``request.tablet_mode`` and keep iPads
    on the patient registration flow."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        env = environment_from_request(request, shell_default=getattr(settings, 'DESKTOP_SHELL', False))
        request.device = detect_device(env)
        request.tablet_mode = tablet_mode(request.device, request.GET)

        if getattr(settings, 'TABLET_RESTRICT_NAVIGATION', False) and is_ipad_user_agent(env.user_agent):
            path = request.path or ''
            if not tablet_may_visit(path):
                logger.debug('tablet redirected away from %s', path)
                return HttpResponseRedirect(f"{settings.TABLET_HOME_PATH}?{urlencode({'device': 'ipad'})}")
        return self.get_response(request)
