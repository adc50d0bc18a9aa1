"""
Device classification from a request environment.

Classification depends only on the user agent, whether the client is
touch capable and whether it runs inside the desktop shell, so it is
memoized per distinct environment.  Tablet mode additionally honours an
explicit ``device=ipad`` query flag.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

TABLET_UA = re.compile(r'iPad')
DESKTOP_MAC_UA = re.compile(r'Macintosh')
MOBILE_UA = re.compile(r'Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini', re.IGNORECASE)

TABLET_MODE_QUERY = ('device', 'ipad')


@dataclass(frozen=True)
class DeviceEnvironment:
    user_agent: str = ''
    # iPadOS reports a desktop Mac user agent; touch support tells them apart
    touch_capable: bool = False
    shell: bool = False


@dataclass(frozen=True)
class DeviceInfo:
    is_tablet: bool
    is_mobile: bool
    is_shell: bool
    user_agent: str


@lru_cache(maxsize=256)
def detect_device(env: DeviceEnvironment) -> DeviceInfo:
    ua = env.user_agent or ''
    is_tablet = bool(TABLET_UA.search(ua) or (DESKTOP_MAC_UA.search(ua) and env.touch_capable))
    return DeviceInfo(
        is_tablet=is_tablet,
        is_mobile=bool(MOBILE_UA.search(ua)),
        is_shell=env.shell,
        user_agent=ua,
    )


def is_ipad_user_agent(user_agent: str) -> bool:
    """User-agent match alone; touch capability is ignored."""
    return bool(TABLET_UA.search(user_agent or ''))


def tablet_mode(info: DeviceInfo, query: Mapping[str, str]) -> bool:
    key, value = TABLET_MODE_QUERY
    return info.is_tablet or query.get(key) == value


def environment_from_request(request, *, shell_default: bool = False) -> DeviceEnvironment:
    headers = request.headers
    return DeviceEnvironment(
        user_agent=headers.get('User-Agent', ''),
        touch_capable=headers.get('X-Touch-Capable', '') in ('1', 'true'),
        shell=shell_default or headers.get('X-Desktop-Shell', '') in ('1', 'true'),
    )


def format_device(info: DeviceInfo, tablet: bool) -> dict:
    return {
        'isTablet': info.is_tablet,
        'isMobile': info.is_mobile,
        'isShell': info.is_shell,
        'userAgent': info.user_agent,
        'tabletMode': tablet,
    }
