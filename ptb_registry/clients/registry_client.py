"""
=============================================================================
REGISTRY STORE CLIENT
=============================================================================

PURPOSE:
    Talk to the spreadsheet web app that holds the PTB registry.

HOW IT WORKS:
    - Read:  GET  {api_url}                 -> {"status": "success", "data": [...]}
    - Save:  POST {"action": "save",  "patient": {...}}
    - Patch: POST {"action": "patch", "id": "...", "updates": {...}}

FAILURE POLICY:
    - Reads never raise: any transport problem, non-2xx status, bad JSON or a
      status other than "success" is logged and comes back as a failed
      RegistryReadResult with no rows.
    - Writes raise RegistryWriteError so the caller can tell the user and let
      them retry. Nothing is retried automatically.

USAGE:
    client = RegistryStoreClient("https://script.example.com/exec")
    result = await client.fetch_raw()
    await client.patch("abc123", {"finalDisposition": "Discharged"})

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger("ptb-registry")


@dataclass(frozen=True)
class RegistryReadResult:
    """
    Outcome of a registry read.

    Attributes:
        ok: True when the sheet answered with status "success" and a data array
        rows: Raw patient rows (empty unless ok)
        error: What went wrong when not ok
    """
    ok: bool
    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @staticmethod
    def failed(error: str) -> "RegistryReadResult":
        return RegistryReadResult(ok=False, rows=[], error=error)


class RegistryWriteError(Exception):
    """A save or patch did not reach the registry sheet."""

    def __init__(self, action: str, message: str, status: Optional[int] = None):
        super().__init__(f"{action} failed: {message}")
        self.action = action
        self.status = status


# ============================================================
# MAIN CLIENT CLASS
# ============================================================

class RegistryStoreClient:
    """
    Async HTTP client for the registry sheet backend.

    ARGS:
        api_url: Web app URL (reads and writes share it)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass an httpx.MockTransport)
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

        logger.info(f"RegistryStoreClient initialized: {self.api_url}")

    def _client(self) -> httpx.AsyncClient:
        # the sheet web app answers through a redirect
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch_raw(self) -> RegistryReadResult:
        """
        Read every registry row.

        RETURNS:
            RegistryReadResult; rows is [] whenever ok is False.

        NOTE:
            This method NEVER raises for transport or payload problems.
        """
        try:
            async with self._client() as client:
                response = await client.get(self.api_url)
                response.raise_for_status()
                result = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Registry read failed ({e.response.status_code})")
            return RegistryReadResult.failed(f"HTTP {e.response.status_code}")

        except httpx.HTTPError as e:
            logger.error(f"Registry read transport error: {e}")
            return RegistryReadResult.failed(str(e) or type(e).__name__)

        except ValueError as e:
            logger.error(f"Registry read returned malformed JSON: {e}")
            return RegistryReadResult.failed(f"JSON parse error: {e}")

        if not isinstance(result, dict) or result.get("status") != "success":
            status = result.get("status") if isinstance(result, dict) else type(result).__name__
            logger.warning(f"Registry read returned status {status!r}, treating as empty")
            return RegistryReadResult.failed(f"status {status!r}")

        rows = result.get("data")
        if not isinstance(rows, list):
            logger.warning("Registry read returned no data array, treating as empty")
            return RegistryReadResult.failed("missing data array")

        logger.debug(f"Registry read: {len(rows)} rows")
        return RegistryReadResult(ok=True, rows=rows)

    async def _post(self, action: str, body: Dict[str, Any]) -> None:
        try:
            async with self._client() as client:
                response = await client.post(self.api_url, json=body)
                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            logger.error(f"Registry {action} failed ({e.response.status_code})")
            raise RegistryWriteError(
                action, f"HTTP {e.response.status_code}", status=e.response.status_code
            ) from e

        except httpx.HTTPError as e:
            logger.error(f"Registry {action} transport error: {e}")
            raise RegistryWriteError(action, str(e) or type(e).__name__) from e

    async def save(self, patient: Dict[str, Any]) -> None:
        """Full upsert of one patient row."""
        await self._post("save", {"action": "save", "patient": patient})
        logger.info(f"Saved patient {patient.get('id')}")

    async def patch(self, patient_id: str, updates: Dict[str, Any]) -> None:
        """Partial update of one patient row by id."""
        await self._post("patch", {"action": "patch", "id": patient_id, "updates": updates})
        logger.info(f"Patched patient {patient_id}: {sorted(updates)}")
