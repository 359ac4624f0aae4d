import logging
import platform
from typing import Callable, Iterable, List, Optional

import httpx

from config import Settings, settings as default_settings
from exceptions import IPDetectionFailure
from models import Identity

logger = logging.getLogger(__name__)

Resolver = Callable[[], Optional[str]]

UNKNOWN_MACHINE_ID = "unknown"


def resolve_first(resolvers: Iterable[Resolver]) -> Optional[str]:
    """
    Try resolvers in priority order and return the first non-empty value.
    Resolvers after the first success are never called.
    """
    for resolver in resolvers:
        value = resolver()
        if value:
            return value
    return None


def ip_echo_resolver(client: httpx.Client, url: str, timeout: float) -> Resolver:
    def resolve() -> Optional[str]:
        try:
            response = client.get(url, timeout=timeout)
        except httpx.HTTPError as e:
            logger.debug("IP service %s failed: %s", url, e)
            return None

        if response.status_code != 200:
            logger.debug("IP service %s returned status %d", url, response.status_code)
            return None

        return response.text.strip() or None

    return resolve


def file_resolver(path: str) -> Resolver:
    def resolve() -> Optional[str]:
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return f.read().strip() or None
        except OSError:
            return None

    return resolve


def hostname_resolver() -> Optional[str]:
    return platform.node().strip() or None


def get_public_ip(client: httpx.Client, services: List[str], timeout: float) -> str:
    """
    Detect the public IP from an ordered list of IP-echo services.
    Raises IPDetectionFailure when every service fails.
    """
    ip = resolve_first(ip_echo_resolver(client, url, timeout) for url in services)
    if ip is None:
        raise IPDetectionFailure(len(services))
    return ip


def get_machine_id(paths: List[str]) -> str:
    """
    Stable local machine identifier: the first non-empty identity file,
    then the host name, then "unknown".
    """
    resolvers: List[Resolver] = [file_resolver(path) for path in paths]
    resolvers.append(hostname_resolver)
    return resolve_first(resolvers) or UNKNOWN_MACHINE_ID


def collect_identity(
    settings: Optional[Settings] = None,
    client: Optional[httpx.Client] = None,
) -> Identity:
    settings = settings or default_settings

    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True)
    try:
        public_ip = get_public_ip(
            client, settings.IP_DETECTION_SERVICES, settings.IP_DETECTION_TIMEOUT
        )
    finally:
        if owns_client:
            client.close()

    machine_id = get_machine_id(settings.MACHINE_ID_PATHS)
    logger.info("Collected identity: public_ip=%s machine_id=%s", public_ip, machine_id)

    return Identity(public_ip=public_ip, machine_id=machine_id)
