"""
URL risk scoring before a destination is published.

Three signals feed a verdict:
1. Local heuristics over the parsed URL (``analyze_heuristics``).
2. The external reputation service (``check_reputation``). It fails open:
   when the service is unreachable the URL is treated as clean and the
   failure reason is kept on the verdict.
3. The community report ledger, consulted as the last heuristic.

Verdict levels only escalate (see ``SafetyLevel.escalate``).
"""

from __future__ import annotations

import asyncio
from typing import Optional
from urllib.parse import urlsplit

import tldextract
import validators as _validators

from errors import RateLimitError, UpstreamUnavailableError, ValidationError
from infrastructure.reputation.protocol import ReputationProvider
from repositories.reputation_repository import ReputationRepository
from schemas.models.safety import (
    ReportResult,
    ReputationEntry,
    ReputationResult,
    SafetyLevel,
    SafetyVerdict,
)
from shared.datetime_utils import today_key, utc_now
from shared.logging import get_logger
from shared.validators import extract_hostname, strip_www

log = get_logger(__name__)

tld_extractor = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

MAX_URL_LENGTH = 2000
MAX_HOST_LABELS = 4
LOOKALIKE_MAX_DISTANCE = 2
REPORTS_DANGEROUS = 3

SUSPICIOUS_TLDS = frozenset(
    {"tk", "ml", "ga", "cf", "gq", "zip", "mov", "top", "buzz", "work"}
)

POPULAR_DOMAINS = (
    "google.com",
    "facebook.com",
    "amazon.com",
    "apple.com",
    "microsoft.com",
    "paypal.com",
    "netflix.com",
    "instagram.com",
    "twitter.com",
    "linkedin.com",
    "github.com",
    "dropbox.com",
    "yahoo.com",
    "outlook.com",
    "gmail.com",
)


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert / delete / substitute, all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def registrable_domain(hostname: str) -> str:
    """``login.go0gle.com`` → ``go0gle.com``; IPs and bare hosts pass through."""
    raw = tld_extractor(hostname)
    if raw.domain and raw.suffix:
        return f"{raw.domain}.{raw.suffix}"
    return strip_www(hostname)


def _ascii_host(hostname: str) -> str:
    """Punycode-encode a Unicode host so IDN labels show their ``xn--`` form."""
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return hostname


class SafetyService:
    def __init__(
        self,
        reputation: ReputationRepository,
        provider: ReputationProvider,
        *,
        report_daily_limit: int = 10,
    ) -> None:
        self._reputation = reputation
        self._provider = provider
        self._report_daily_limit = report_daily_limit

    async def analyze_heuristics(self, url: str) -> SafetyVerdict:
        verdict = SafetyVerdict()

        hostname = extract_hostname(url)
        if hostname is None:
            verdict.flag(SafetyLevel.DANGEROUS, "Invalid URL")
            return verdict
        hostname = _ascii_host(hostname)

        if "xn--" in hostname:
            verdict.flag(
                SafetyLevel.SUSPICIOUS,
                "Contains punycode (internationalized characters that may mimic ASCII)",
            )

        base_domain = registrable_domain(hostname)
        for popular in POPULAR_DOMAINS:
            if base_domain == popular:
                continue
            distance = levenshtein(base_domain, popular)
            if 0 < distance <= LOOKALIKE_MAX_DISTANCE:
                verdict.flag(
                    SafetyLevel.SUSPICIOUS,
                    f"Looks similar to {popular} (edit distance: {distance})",
                )
                break

        tld = hostname.rsplit(".", 1)[-1]
        if tld in SUSPICIOUS_TLDS:
            verdict.flag(SafetyLevel.SUSPICIOUS, f"Uses suspicious TLD: .{tld}")

        if len(url) > MAX_URL_LENGTH:
            verdict.flag(
                SafetyLevel.SUSPICIOUS,
                f"Excessively long URL (>{MAX_URL_LENGTH} characters)",
            )

        labels = hostname.split(".")
        if len(labels) > MAX_HOST_LABELS:
            verdict.flag(
                SafetyLevel.SUSPICIOUS, f"Excessive subdomains ({len(labels)} levels)"
            )

        if _validators.ipv4(hostname):
            verdict.flag(
                SafetyLevel.SUSPICIOUS, "Uses IP address instead of domain name"
            )

        # Everything before the last "@" in the authority is userinfo, so any
        # "@" there sits in front of the real host
        if "@" in urlsplit(url.strip()).netloc:
            verdict.flag(
                SafetyLevel.DANGEROUS,
                "Contains @ symbol before hostname (credential trick)",
            )

        entry = await self._reputation.get_entry(strip_www(hostname))
        if entry is not None and entry.report_count >= REPORTS_DANGEROUS:
            verdict.flag(
                SafetyLevel.DANGEROUS,
                f"Community-reported as suspicious ({entry.report_count} reports)",
            )
        elif entry is not None and entry.report_count >= 1:
            plural = "s" if entry.report_count > 1 else ""
            verdict.flag(
                SafetyLevel.SUSPICIOUS,
                f"Community-reported ({entry.report_count} report{plural})",
            )

        return verdict

    async def check_reputation(self, url: str) -> ReputationResult:
        try:
            return await self._provider.lookup(url)
        except UpstreamUnavailableError as e:
            log.warning("reputation_check_failed", error=e.message, fail_open=True)
            return ReputationResult(safe=True, error=e.message)

    async def full_check(self, url: str) -> SafetyVerdict:
        reputation, verdict = await asyncio.gather(
            self.check_reputation(url),
            self.analyze_heuristics(url),
        )

        verdict.reputation_safe = reputation.safe
        verdict.reputation_error = reputation.error
        if not reputation.safe:
            verdict.level = SafetyLevel.DANGEROUS
            verdict.reasons.insert(
                0, f"Google Safe Browsing: {', '.join(reputation.threats)}"
            )

        log.info(
            "safety_check_completed",
            level=verdict.level.value,
            reasons=len(verdict.reasons),
            reputation_error=reputation.error,
        )
        return verdict

    async def report(self, url: str, reporter_id: str) -> ReportResult:
        """File a community report against the URL's domain.

        The daily counter counts every accepted report, repeats included;
        the domain's report count only moves on a reporter's first report.
        """
        hostname = extract_hostname(url)
        if hostname is None:
            raise ValidationError("invalid URL", field="url")
        domain = strip_www(_ascii_host(hostname))

        day = today_key()
        submitted = await self._reputation.get_report_count(reporter_id, day)
        if submitted >= self._report_daily_limit:
            log.warning("report_rate_limited", reporter=reporter_id, count=submitted)
            raise RateLimitError(
                f"Daily report limit reached ({self._report_daily_limit}/day)"
            )
        await self._reputation.set_report_count(reporter_id, day, submitted + 1)

        entry: Optional[ReputationEntry] = await self._reputation.get_entry(domain)
        if entry is None:
            entry = ReputationEntry(reported_at=utc_now())
        if reporter_id not in entry.reported_by:
            entry.reported_by.append(reporter_id)
            entry.report_count += 1
            entry.reported_at = utc_now()
        await self._reputation.save_entry(domain, entry)

        log.info(
            "url_reported",
            domain=domain,
            reporter=reporter_id,
            report_count=entry.report_count,
        )
        return ReportResult(domain=domain, report_count=entry.report_count)
