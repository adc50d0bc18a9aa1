from django.conf import settings

from core.services.device import detect_device, environment_from_request, tablet_mode


def device(request):
    """Expose device info to templates (the layout hides chrome on tablets)."""
    info = getattr(request, 'device', None)
    if info is None:
        info = detect_device(environment_from_request(request, shell_default=getattr(settings, 'DESKTOP_SHELL', False)))
    mode = getattr(request, 'tablet_mode', None)
    if mode is None:
        mode = tablet_mode(info, request.GET)
    return {'device': info, 'tablet_mode': mode}
