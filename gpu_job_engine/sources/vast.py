"""Vast.ai instances connector.

Docs: https://docs.vast.ai/api

We fetch the account's instances, normalize them to Jobs, and keep every field
we don't interpret in `Job.metadata`.

For development (or an account with no instances yet) a small built-in set of
fixture instances stands in for the provider's answer.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..models import Job
from ..normalize import normalize_instances
from .base import JobSource, ProviderError

logger = logging.getLogger(__name__)

API_KEY_ENV = "VAST_API_KEY"


def fixture_instances(now: datetime) -> List[Dict[str, Any]]:
    """Five sample instances with start dates relative to `now`."""
    epoch = int(now.timestamp())
    rows = [
        (1001, "A100", "us-west", 1.2, "running", 3600),
        (1002, "RTX 4090", "us-east", 0.9, "running", 2400),
        (1003, "T4", "eu-central", 0.4, "completed", 7200),
        (1004, "A100", "us-west", 1.1, "running", 4800),
        (1005, "RTX 3090", "us-east", 0.7, "queued", 0),
    ]
    return [
        {
            "id": inst_id,
            "gpu_name": gpu,
            "geolocation": region,
            "dph_total": rate,
            "cur_state": state,
            "duration": duration,
            "start_date": epoch - duration,
        }
        for inst_id, gpu, region, rate, state, duration in rows
    ]


class VastSource(JobSource):
    """Fetch instances from Vast.ai and normalize them."""

    name = "vast"
    base_url = "https://console.vast.ai/api/v0/instances"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout_s: float = 20.0,
        use_fixture: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv(API_KEY_ENV)
        self._timeout = timeout_s
        self._use_fixture = use_fixture
        self._transport = transport

    def fetch_raw(self, now: datetime) -> List[Dict[str, Any]]:
        """Return the raw instance list (or the fixtures standing in for it)."""
        if self._use_fixture:
            logger.info("Using fixture instances (fixture mode)")
            return fixture_instances(now)

        if not self._api_key:
            raise ProviderError(f"Missing API key; set {API_KEY_ENV} or pass api_key")

        with httpx.Client(timeout=self._timeout, follow_redirects=True, transport=self._transport) as client:
            resp = client.get(self.base_url, params={"api_key": self._api_key})
            logger.debug("Vast response status: %s", resp.status_code)
            logger.debug("Vast response text: %s", resp.text[:200])
            resp.raise_for_status()

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderError(f"Failed to parse JSON; preview: {resp.text[:200]!r}") from exc

        instances = payload.get("instances") if isinstance(payload, dict) else None
        if not instances:
            logger.warning("Provider returned no instances; falling back to fixture instances")
            return fixture_instances(now)
        return list(instances)

    def fetch(self) -> List[Job]:
        """Fetch instances and return a list of normalized Jobs."""
        now = datetime.now(timezone.utc)
        jobs = normalize_instances(self.fetch_raw(now), fetched_at=now)
        logger.info("Fetched %d jobs from %s", len(jobs), self.name)
        return jobs
