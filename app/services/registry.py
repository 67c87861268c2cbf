"""Consul service registration on startup, deregistration on shutdown."""
import logging
import socket

import httpx

from app.config import Settings

logger = logging.getLogger(__name__)

CHECK_INTERVAL = "15s"
CHECK_TIMEOUT = "5s"


def _local_address() -> str:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            # no packets are sent; connect() only picks the outbound interface
            s.connect(("10.255.255.255", 1))
            return s.getsockname()[0]
    except OSError:
        return "127.0.0.1"


class ServiceRegistry:
    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None, hostname: str | None = None):
        self.settings = settings
        self._transport = transport
        self.hostname = hostname or socket.gethostname()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.service_registry_url)

    @property
    def service_id(self) -> str:
        return f"{self.settings.service_name}-{self.hostname}"

    @property
    def address(self) -> str:
        if self.settings.service_address:
            return self.settings.service_address
        # container name resolves inside the production network
        return self.hostname if self.settings.is_production else _local_address()

    def registration(self) -> dict:
        s = self.settings
        return {
            "ID": self.service_id,
            "Name": s.service_name,
            "Address": self.address,
            "Port": s.port,
            "Check": {
                "HTTP": f"http://{self.address}:{s.port}/health",
                "Interval": CHECK_INTERVAL,
                "Timeout": CHECK_TIMEOUT,
            },
            "Tags": ["api", s.service_name, "fastapi"],
            "Meta": {"Description": s.service_description},
        }

    def _put(self, path: str, payload: dict | None = None) -> bool:
        url = f"{self.settings.service_registry_url.rstrip('/')}{path}"
        try:
            with httpx.Client(timeout=5.0, transport=self._transport) as client:
                r = client.put(url, json=payload)
        except httpx.HTTPError as e:
            logger.error("Service registry request failed: %s %s: %s", url, type(e).__name__, e)
            return False
        if not r.is_success:
            logger.error("Service registry returned %s for %s: %s", r.status_code, url, r.text[:500])
            return False
        return True

    def register(self) -> bool:
        if not self.enabled:
            return False
        ok = self._put("/v1/agent/service/register", self.registration())
        if ok:
            logger.info("Service %s registered with registry at %s", self.service_id, self.settings.service_registry_url)
        return ok

    def deregister(self) -> bool:
        if not self.enabled:
            return False
        ok = self._put(f"/v1/agent/service/deregister/{self.service_id}")
        if ok:
            logger.info("Service %s deregistered from registry", self.service_id)
        return ok
