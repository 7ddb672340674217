"""
JSON log-list parser adapter — schema validation + LogEntry construction.

Adapter layer — implements the LogListParser port using:
  - pydantic: JSON decoding and schema validation of the published format
  - cryptography (PyCA): default decoder for each log's DER public key

Pipeline:
  raw bytes
    → pydantic: _LogListSchema.model_validate_json()
    → per log: base64 decode, log_id == SHA-256(key) check, key decode
    → LogEntry / LogOperator / LogListDocument (domain models)

Accepted shape (unknown keys are ignored):

  {
    "version": "1.1",
    "log_list_timestamp": 1704070861000,
    "operators": [
      {
        "name": "...", "email": ["..."],
        "logs": [
          {
            "description": "...", "log_id": "<base64>", "key": "<base64 DER>",
            "url": "...", "mmd": 86400,
            "state": {"usable": {"timestamp": 1667328840000}},
            "temporal_interval": {"start_inclusive": ..., "end_exclusive": ...}
          }
        ]
      }
    ]
  }
"""

from __future__ import annotations

import base64
import binascii

import structlog
from cryptography.hazmat.primitives.serialization import load_der_public_key
from pydantic import BaseModel, Field, field_validator
from railway import ErrorCode
from railway.result import Result

from ct_log_store.domain.models import (
    LogEntry,
    LogListDocument,
    LogOperator,
    LogState,
    LogStatus,
    TemporalInterval,
    compute_log_id,
)
from ct_log_store.domain.ports import KeyDecoder

log = structlog.get_logger()

# ─────────────────────── Published Schema ───────────────────────


class _StateSchema(BaseModel):
    timestamp: int


class _TemporalIntervalSchema(BaseModel):
    start_inclusive: int | None = None
    end_exclusive: int | None = None


class _LogSchema(BaseModel):
    description: str = Field(min_length=1)
    log_id: bytes
    key: bytes
    url: str = Field(min_length=1)
    mmd: int = Field(ge=0)
    state: dict[str, _StateSchema]
    temporal_interval: _TemporalIntervalSchema | None = None

    @field_validator("log_id", "key", mode="before")
    @classmethod
    def decode_base64(cls, value: object) -> bytes:
        """Strict base64: reject non-alphabet characters and bad padding."""
        if not isinstance(value, str):
            raise ValueError("expected a base64 string")
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64: {e}") from e

    @field_validator("state")
    @classmethod
    def single_known_status(cls, value: dict[str, _StateSchema]) -> dict[str, _StateSchema]:
        """The state object carries exactly one key, and it names a LogStatus."""
        if len(value) != 1:
            raise ValueError(f"state must have exactly one status, got {sorted(value)}")
        LogStatus(next(iter(value)))
        return value


class _OperatorSchema(BaseModel):
    name: str = Field(min_length=1)
    email: list[str]
    logs: list[_LogSchema]


class _LogListSchema(BaseModel):
    version: str
    log_list_timestamp: int
    operators: list[_OperatorSchema]


# ─────────────────────── Schema → Domain ───────────────────────


def _to_state(state: dict[str, _StateSchema]) -> LogState:
    ((name, detail),) = state.items()
    return LogState(status=LogStatus(name), timestamp_millis=detail.timestamp)


def _to_interval(interval: _TemporalIntervalSchema | None) -> TemporalInterval:
    if interval is None:
        return TemporalInterval()
    return TemporalInterval(
        start_inclusive=interval.start_inclusive,
        end_exclusive=interval.end_exclusive,
    )


def _to_entry(schema: _LogSchema, operator_name: str, key_decoder: KeyDecoder) -> LogEntry:
    """
    Build one LogEntry. Raises on any inconsistency.

    The published log_id must be the SHA-256 digest of the published key.
    """
    if compute_log_id(schema.key) != schema.log_id:
        raise ValueError(
            f"log_id does not match key digest for log {schema.description!r}"
        )
    return LogEntry(
        log_id=schema.log_id,
        key_bytes=schema.key,
        public_key=key_decoder(schema.key),
        description=schema.description,
        url=schema.url,
        operator_name=operator_name,
        state=_to_state(schema.state),
        temporal_interval=_to_interval(schema.temporal_interval),
        max_merge_delay_seconds=schema.mmd,
    )


def _to_operator(schema: _OperatorSchema, key_decoder: KeyDecoder) -> LogOperator:
    return LogOperator(
        name=schema.name,
        emails=tuple(schema.email),
        logs=tuple(_to_entry(log_schema, schema.name, key_decoder) for log_schema in schema.logs),
    )


# ─────────────────────── Public Parser Class ───────────────────────


class JsonLogListParser:
    """
    Parse raw JSON log-list bytes into a LogListDocument.

    Implements the LogListParser port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def __init__(self, key_decoder: KeyDecoder = load_der_public_key) -> None:
        self._key_decoder = key_decoder

    def parse(self, raw: bytes) -> Result[LogListDocument]:
        """
        Parse and validate a log list.

        Returns Result[LogListDocument] with the id index already built.
        Returns Result.failure(PARSE_ERROR, ...) for invalid JSON, a wrong
        shape, a missing field, bad base64, an id/key mismatch, or a key the
        decoder rejects.
        """
        return Result.from_computation(
            lambda: self._do_parse(raw),
            ErrorCode.PARSE_ERROR,
            "Failed to parse log list",
        )

    def _do_parse(self, raw: bytes) -> LogListDocument:
        schema = _LogListSchema.model_validate_json(raw)
        document = LogListDocument(
            version=schema.version,
            timestamp_millis=schema.log_list_timestamp,
            operators=tuple(_to_operator(op, self._key_decoder) for op in schema.operators),
        )

        log.info(
            "parser.complete",
            version=document.version,
            timestamp=document.timestamp_millis,
            operators=len(document.operators),
            logs=document.log_count,
        )
        return document
