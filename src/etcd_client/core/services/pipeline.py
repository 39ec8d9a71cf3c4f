"""Request-execution pipeline.

Every keyspace operation runs the same chain: the transport dispatches the
request, `extract_response` turns the raw HTTP response into a
`RawResponse` envelope (reading and releasing the body exactly once), and
`translate_result` parses that envelope into an `EtcdResult`, classifying
application error codes against what the operation accepts.

Each stage raises a subclass of `EtcdClientError`; nothing else is meant to
escape the chain.
"""

from __future__ import annotations

import logging
import re
from typing import Collection

import httpx
from pydantic import ValidationError

from etcd_client.core.domain.models import EtcdResult, RawResponse
from etcd_client.core.errors import (
    EtcdDomainError,
    EtcdEmptyResponseError,
    EtcdParseError,
    EtcdTransportError,
)
from etcd_client.core.interfaces.transport import HttpTransport

logger = logging.getLogger(__name__)

ETCD_INDEX_HEADER = "X-Etcd-Index"
RAFT_INDEX_HEADER = "X-Raft-Index"
RAFT_TERM_HEADER = "X-Raft-Term"

BAD_REQUEST = 400

_NO_BODY_STATUSES = frozenset({204, 304})
_COUNTER_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_counter(headers: httpx.Headers, name: str) -> int | None:
    """Read a protocol counter header; `None` when the header is missing."""

    value = headers.get(name)
    if value is None:
        return None
    if not _COUNTER_PATTERN.fullmatch(value):
        raise EtcdParseError(f"Malformed {name} header: {value!r}")
    return int(value)


def _may_have_body(status_code: int) -> bool:
    return status_code >= 200 and status_code not in _NO_BODY_STATUSES


def _declares_length(response: httpx.Response) -> bool:
    return "content-length" in response.headers or "transfer-encoding" in response.headers


async def extract_response(
    response: httpx.Response,
    accepted_status: Collection[int],
) -> RawResponse:
    """Consume `response` once and build the envelope for the translator.

    The body is read whenever the status allows one, even without a
    `Content-Length` (close-delimited or HTTP/2 bodies), and is always
    released before returning or raising. A 400 that carries a body is
    passed through: the JSON explains the failure better than the status
    line does.
    """

    try:
        status_code = response.status_code

        body: str | None = None
        if _may_have_body(status_code):
            try:
                await response.aread()
            except httpx.HTTPError as exc:
                raise EtcdTransportError(
                    "Error reading response", http_status_code=status_code
                ) from exc
            # Nothing read and no declared length: there was no body at all.
            if response.content or _declares_length(response):
                body = response.text

        if status_code not in accepted_status:
            if not (status_code == BAD_REQUEST and body is not None):
                logger.warning("rejected response %s %s", status_code, response.reason_phrase)
                raise EtcdTransportError(
                    f"Error response from etcd: {response.reason_phrase}",
                    http_status_code=status_code,
                )

        return RawResponse(
            body=body,
            status_code=status_code,
            etcd_index=parse_counter(response.headers, ETCD_INDEX_HEADER),
            raft_index=parse_counter(response.headers, RAFT_INDEX_HEADER),
            raft_term=parse_counter(response.headers, RAFT_TERM_HEADER),
        )
    finally:
        await response.aclose()


def parse_result(body: str) -> EtcdResult:
    try:
        return EtcdResult.model_validate_json(body)
    except ValidationError as exc:
        raise EtcdParseError("Error parsing response from etcd") from exc


def translate_result(
    raw: RawResponse | None,
    accepted_error_codes: Collection[int] = (),
) -> EtcdResult:
    """Parse the envelope and attach the header counters.

    An accepted error code is returned as a normal result; the caller
    inspects `result.is_error`.
    """

    # Empty body: the service went away (e.g. shut down mid-watch).
    if raw is None or not raw.body:
        raise EtcdEmptyResponseError(
            "No response from etcd",
            http_status_code=raw.status_code if raw is not None else None,
        )

    result = parse_result(raw.body).model_copy(
        update={
            "etcd_index": raw.etcd_index,
            "raft_index": raw.raft_index,
            "raft_term": raw.raft_term,
        }
    )

    if result.is_error and result.error_code not in accepted_error_codes:
        raise EtcdDomainError(result.message, http_status_code=raw.status_code, result=result)
    return result


async def fetch_raw(
    transport: HttpTransport,
    request: httpx.Request,
    accepted_status: Collection[int],
) -> RawResponse:
    """Transport + extractor stages, tracked as one in-flight operation.

    Closing the transport cancels the operation even while the body is still
    being read (a watch receives its headers long before its body).
    """

    return await transport.tracked(_dispatch(transport, request, accepted_status))


async def _dispatch(
    transport: HttpTransport,
    request: httpx.Request,
    accepted_status: Collection[int],
) -> RawResponse:
    try:
        response = await transport.send(request)
    except httpx.HTTPError as exc:
        raise EtcdTransportError(f"Error executing request: {exc}") from exc

    logger.debug("%s %s -> %s", request.method, request.url, response.status_code)
    return await extract_response(response, accepted_status)


async def execute(
    transport: HttpTransport,
    request: httpx.Request,
    accepted_status: Collection[int],
    accepted_error_codes: Collection[int] = (),
) -> EtcdResult:
    """Full chain: transport, extractor, translator."""

    raw = await fetch_raw(transport, request, accepted_status)
    return translate_result(raw, accepted_error_codes)
