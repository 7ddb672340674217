"""
Compliance policy adapter — a Chrome-style CT policy.

Implements the CompliancePolicy port.

Store compliance:
  - the log list carries a timestamp no older than `max_log_list_age_days`
  - at least one log in it is currently active

Evidence compliance (per leaf certificate):
  - only VALID SCTs from logs that were active at the SCT's timestamp count
  - embedded SCTs: 2 for certificates living at most `short_lived_max_days`,
    3 otherwise
  - SCTs delivered by TLS extension or OCSP: 2
  - the counted SCTs must come from `min_distinct_operators` operators
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import timedelta

import structlog
from cryptography import x509

from ct_log_store.adapters.clock import wall_clock_millis
from ct_log_store.domain.models import (
    PolicyCompliance,
    SctOrigin,
    VerificationResult,
    VerifiedSct,
)
from ct_log_store.domain.ports import LogStoreReader

log = structlog.get_logger()

_MILLIS_PER_DAY = 24 * 60 * 60 * 1000


class ChromeStylePolicy:
    def __init__(
        self,
        max_log_list_age_days: int = 70,
        min_distinct_operators: int = 2,
        short_lived_max_days: int = 180,
        short_lived_min_scts: int = 2,
        long_lived_min_scts: int = 3,
        wall_clock: Callable[[], int] = wall_clock_millis,
    ) -> None:
        if max_log_list_age_days < 1:
            raise ValueError("max_log_list_age_days must be >= 1")
        if min_distinct_operators < 1:
            raise ValueError("min_distinct_operators must be >= 1")
        self._max_age_millis = max_log_list_age_days * _MILLIS_PER_DAY
        self._min_distinct_operators = min_distinct_operators
        self._short_lived_max = timedelta(days=short_lived_max_days)
        self._short_lived_min_scts = short_lived_min_scts
        self._long_lived_min_scts = long_lived_min_scts
        self._wall_clock = wall_clock

    # ─────────────────────── Store ───────────────────────

    def is_log_store_compliant(self, store: LogStoreReader) -> bool:
        timestamp = store.get_timestamp()
        if timestamp is None:
            return False

        now = self._wall_clock()
        age_millis = now - timestamp
        if age_millis > self._max_age_millis:
            log.warning(
                "policy.log_list_stale",
                age_days=age_millis // _MILLIS_PER_DAY,
                max_age_days=self._max_age_millis // _MILLIS_PER_DAY,
            )
            return False

        if not any(entry.is_active_at(now) for entry in store.get_logs()):
            log.warning("policy.no_active_logs")
            return False
        return True

    # ─────────────────────── Evidence ───────────────────────

    def classify_evidence(
        self,
        result: VerificationResult,
        leaf: x509.Certificate,
    ) -> PolicyCompliance:
        if not result.scts:
            return PolicyCompliance.NO_SCTS_FOUND

        countable = [
            sct for sct in result.valid_scts if sct.log.is_active_at(sct.timestamp_millis)
        ]
        embedded = [sct for sct in countable if sct.origin is SctOrigin.EMBEDDED]
        delivered = [sct for sct in countable if sct.origin is not SctOrigin.EMBEDDED]

        lacks_diversity = False
        for group, required in (
            (embedded, self._required_embedded(leaf)),
            (delivered, self._short_lived_min_scts),
        ):
            if len(group) < required:
                continue
            if _distinct_operators(group) >= self._min_distinct_operators:
                return PolicyCompliance.COMPLY
            lacks_diversity = True

        if lacks_diversity:
            return PolicyCompliance.NOT_ENOUGH_DIVERSE_SCTS
        return PolicyCompliance.NOT_ENOUGH_SCTS

    def _required_embedded(self, leaf: x509.Certificate) -> int:
        lifetime = leaf.not_valid_after_utc - leaf.not_valid_before_utc
        if lifetime <= self._short_lived_max:
            return self._short_lived_min_scts
        return self._long_lived_min_scts


def _distinct_operators(scts: Sequence[VerifiedSct]) -> int:
    return len({sct.log.operator_name for sct in scts if sct.log is not None})
