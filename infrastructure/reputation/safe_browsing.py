"""Google Safe Browsing (v4 Lookup API) implementation of ReputationProvider.

Raises ``UpstreamUnavailableError`` for transport failures, timeouts and
non-success or malformed responses. Whether that means "safe" is the caller's policy
decision, not this client's.
"""

from errors import UpstreamUnavailableError
from infrastructure.http_client import HttpClient
from schemas.models.safety import ReputationResult
from shared.logging import get_logger

log = get_logger(__name__)

THREAT_TYPES = [
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "UNWANTED_SOFTWARE",
    "POTENTIALLY_HARMFUL_APPLICATION",
]


class SafeBrowsingProvider:
    def __init__(
        self,
        api_key: str,
        http_client: HttpClient,
        endpoint: str = "https://safebrowsing.googleapis.com/v4/threatMatches:find",
        client_id: str = "snaplink",
        client_version: str = "1.0.0",
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._endpoint = endpoint
        self._client_id = client_id
        self._client_version = client_version

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _payload(self, url: str) -> dict:
        return {
            "client": {
                "clientId": self._client_id,
                "clientVersion": self._client_version,
            },
            "threatInfo": {
                "threatTypes": THREAT_TYPES,
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

    async def lookup(self, url: str) -> ReputationResult:
        if not self.configured:
            raise UpstreamUnavailableError("safe browsing API key not configured")

        response = await self._http.post(
            self._endpoint,
            params={"key": self._api_key},
            json=self._payload(url),
        )
        if response.status_code != 200:
            log.warning(
                "safe_browsing_api_error",
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise UpstreamUnavailableError(
                f"safe browsing returned HTTP {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError("safe browsing returned invalid JSON") from e

        matches = (body.get("matches") or []) if isinstance(body, dict) else None
        if not isinstance(matches, list) or not all(isinstance(m, dict) for m in matches):
            log.warning("safe_browsing_unexpected_body", body_type=type(body).__name__)
            raise UpstreamUnavailableError("safe browsing returned an unexpected body")

        threats = sorted({str(m.get("threatType") or "UNKNOWN") for m in matches})
        return ReputationResult(safe=not matches, threats=threats)
