"""Runtime settings for ledger normalization.

Settings come from environment variables (the CLI loads a local ``.env`` with
``python-dotenv`` first, without overriding variables already set):

- ``FOLIO_LEDGER_EXCLUDED_VOUCHER_TYPES``: comma separated voucher types whose
  rows are internal ledger mechanics rather than cash movement.
- ``FOLIO_LEDGER_OPENING_BALANCE_LABEL``: particulars text of the running
  balance seed row.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_EXCLUDED_VOUCHER_TYPES: frozenset[str] = frozenset({"Book Voucher", "Delivery Voucher"})
DEFAULT_OPENING_BALANCE_LABEL = "Opening Balance"

_EXCLUDED_ENV_VAR = "FOLIO_LEDGER_EXCLUDED_VOUCHER_TYPES"
_OPENING_ENV_VAR = "FOLIO_LEDGER_OPENING_BALANCE_LABEL"


class LedgerSettings(BaseModel):
    """Validated, immutable settings consumed by the ledger normalizer."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    excluded_voucher_types: frozenset[str] = DEFAULT_EXCLUDED_VOUCHER_TYPES
    opening_balance_label: str = DEFAULT_OPENING_BALANCE_LABEL

    @field_validator("excluded_voucher_types")
    @classmethod
    def _strip_voucher_types(cls, v: frozenset[str]) -> frozenset[str]:
        items = frozenset(s.strip() for s in v if s.strip())
        if not items:
            raise ValueError("excluded_voucher_types must name at least one voucher type")
        return items

    @field_validator("opening_balance_label")
    @classmethod
    def _label_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("opening_balance_label must be non-empty")
        return v


def load_settings(environ: Mapping[str, str] | None = None) -> LedgerSettings:
    """Build :class:`LedgerSettings` from ``environ`` (defaults to ``os.environ``).

    Unset or blank variables keep their defaults. Invalid values raise
    ``pydantic.ValidationError`` (a ``ValueError`` subclass).
    """

    env = os.environ if environ is None else environ
    values: dict[str, object] = {}

    raw_excluded = (env.get(_EXCLUDED_ENV_VAR) or "").strip()
    if raw_excluded:
        values["excluded_voucher_types"] = frozenset(raw_excluded.split(","))

    raw_label = (env.get(_OPENING_ENV_VAR) or "").strip()
    if raw_label:
        values["opening_balance_label"] = raw_label

    return LedgerSettings(**values)


__all__ = [
    "DEFAULT_EXCLUDED_VOUCHER_TYPES",
    "DEFAULT_OPENING_BALANCE_LABEL",
    "LedgerSettings",
    "load_settings",
]
