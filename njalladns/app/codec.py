"""Conversion between record variants and the Njalla record format.

Njalla stores every record as a flat object (``content`` plus the
``prio``/``weight``/``port``/``target``/``value`` fields a type needs).
``to_provider`` and ``from_provider`` map between that and the variants
in :mod:`njalladns.app.records`; the ``*_params`` helpers build the
request bodies for the RPC methods.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List

from dns.exception import DNSException

from njalladns.app.exceptions import ConversionError
from njalladns.app.records import (
    CNAME,
    MX,
    RECORD_TYPES,
    RR,
    SRV,
    TXT,
    Address,
    ServiceBinding,
    format_svc_params,
    parse_svc_params,
    record_identity,
)
from njalladns.app.utils.names import relative_name

# Sent only when non-zero / non-empty
OPTIONAL_FIELDS = ("ttl", "prio", "weight", "port", "target", "value")

# Holds an SvcParams string the parser rejected, so it survives a round trip
RAW_PARAMS_KEY = "_content"


@dataclass
class NjallaRecord:
    id: str = ""
    domain: str = ""
    type: str = ""
    name: str = ""
    content: str = ""
    ttl: int = 0
    prio: int = 0
    weight: int = 0
    port: int = 0
    target: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NjallaRecord":
        if not isinstance(data, dict):
            raise TypeError(f"expected a record object, got {type(data).__name__}")
        return cls(
            id=str(data.get("id") or ""),
            domain=data.get("domain") or "",
            type=data.get("type") or "",
            name=data.get("name") or "",
            content=data.get("content") or "",
            ttl=int(data.get("ttl") or 0),
            prio=int(data.get("prio") or 0),
            weight=int(data.get("weight") or 0),
            port=int(data.get("port") or 0),
            target=data.get("target") or "",
            value=data.get("value") or "",
        )


def parse_record_list(result: Any) -> List[NjallaRecord]:
    """Decode a ``list-records`` result: ``{"records": [...]}``."""
    if result is None:
        return []
    if not isinstance(result, dict):
        raise TypeError(f"expected an object, got {type(result).__name__}")
    return [NjallaRecord.from_dict(item) for item in result.get("records") or []]


# ----------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------


def list_params(zone: str) -> Dict[str, Any]:
    return {"domain": zone}


def add_params(record: NjallaRecord) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "domain": record.domain,
        "type": record.type,
        "name": record.name,
        "content": record.content,
    }
    for key in OPTIONAL_FIELDS:
        value = getattr(record, key)
        if value:
            params[key] = value
    return params


def edit_params(record: NjallaRecord, identity: str) -> Dict[str, Any]:
    params = {"id": identity}
    params.update(add_params(record))
    return params


def remove_params(zone: str, identity: str) -> Dict[str, Any]:
    return {"domain": zone, "id": identity}


# ----------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------


def _svc_params(text: str) -> Dict[str, List[str]]:
    if not text:
        return {}
    try:
        return parse_svc_params(text)
    except DNSException:
        return {RAW_PARAMS_KEY: [text]}


def _parse_address(record: NjallaRecord):
    version = 6 if record.type == "AAAA" else 4
    try:
        ip = ipaddress.ip_address(record.content)
    except ValueError as exc:
        raise ConversionError(
            f'invalid {record.type} record IP address "{record.content}": {exc}'
        ) from exc
    if ip.version != version:
        raise ConversionError(
            f'invalid {record.type} record IP address "{record.content}": '
            f"not an IPv{version} address"
        )
    return ip


def from_provider(record: NjallaRecord):
    """Convert a Njalla record into the matching record variant."""
    ttl = timedelta(seconds=record.ttl)
    identity = record.id or None

    if record.type in ("A", "AAAA"):
        return Address(
            name=record.name, ip=_parse_address(record), ttl=ttl, identity=identity
        )
    if record.type == "CNAME":
        return CNAME(name=record.name, target=record.content, ttl=ttl, identity=identity)
    if record.type == "TXT":
        return TXT(name=record.name, text=record.content, ttl=ttl, identity=identity)
    if record.type == "MX":
        return MX(
            name=record.name,
            preference=record.prio,
            target=record.content,
            ttl=ttl,
            identity=identity,
        )
    if record.type == "SRV":
        return SRV(
            name=record.name,
            priority=record.prio,
            weight=record.weight,
            port=record.port,
            target=record.content,
            ttl=ttl,
            identity=identity,
        )
    if record.type == "HTTPS":
        return ServiceBinding(
            name=record.name,
            priority=record.prio,
            target=record.target,
            params=_svc_params(record.value),
            scheme="https",
            ttl=ttl,
            identity=identity,
        )
    if record.type == "SVCB":
        return ServiceBinding(
            name=record.name,
            priority=record.prio,
            target=record.target,
            params=_svc_params(record.content),
            scheme="",
            ttl=ttl,
            identity=identity,
        )
    return RR(name=record.name, type=record.type, data=record.content, ttl=ttl)


def _ttl_seconds(ttl) -> int:
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    return int(ttl)


def to_provider(record, zone: str) -> NjallaRecord:
    """Convert a record variant into a Njalla record for zone.

    The name is made relative to the zone and the TTL truncated to whole
    seconds. The record's identity, if any, is copied into ``id``.
    """
    if not isinstance(record, RECORD_TYPES):
        raise ConversionError(f"unsupported record type: {type(record).__name__}")

    result = NjallaRecord(
        id=record_identity(record),
        domain=zone,
        type=record.type,
        name=relative_name(record.name, zone),
        ttl=_ttl_seconds(record.ttl),
    )

    if isinstance(record, Address):
        result.content = str(record.ip)
    elif isinstance(record, (CNAME, MX, SRV)):
        result.content = record.target
        if isinstance(record, MX):
            result.prio = record.preference
        elif isinstance(record, SRV):
            result.prio = record.priority
            result.weight = record.weight
            result.port = record.port
    elif isinstance(record, TXT):
        result.content = record.text
    elif isinstance(record, ServiceBinding):
        result.target = record.target
        result.prio = record.priority
        raw = record.params.get(RAW_PARAMS_KEY)
        try:
            params = raw[0] if raw else format_svc_params(record.params)
        except DNSException as exc:
            raise ConversionError(f"invalid {result.type} record params: {exc}") from exc
        if result.type == "HTTPS":
            result.value = params
        else:
            result.content = params
    else:
        result.content = record.data

    return result
