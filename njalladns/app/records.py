"""Record variants understood by the provider.

Every persistable variant carries an optional ``identity``: the opaque
record ID issued by Njalla. Callers keep the records returned from
``list_records``/``append_records``/``set_records`` and pass them back
later so updates and deletes can address the remote record directly.
``RR`` is the generic fallback for types without a dedicated variant and
never carries an identity.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Union

import dns.rdata
import dns.rdataclass
import dns.rdatatype
from dns.rdtypes import svcbbase

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class Address:
    name: str
    ip: IPAddress
    ttl: timedelta = timedelta(0)
    identity: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.ip, str):
            object.__setattr__(self, "ip", ipaddress.ip_address(self.ip))

    @property
    def type(self) -> str:
        return "AAAA" if self.ip.version == 6 else "A"


@dataclass(frozen=True)
class CNAME:
    name: str
    target: str
    ttl: timedelta = timedelta(0)
    identity: Optional[str] = None

    @property
    def type(self) -> str:
        return "CNAME"


@dataclass(frozen=True)
class TXT:
    name: str
    text: str
    ttl: timedelta = timedelta(0)
    identity: Optional[str] = None

    @property
    def type(self) -> str:
        return "TXT"


@dataclass(frozen=True)
class MX:
    name: str
    preference: int
    target: str
    ttl: timedelta = timedelta(0)
    identity: Optional[str] = None

    @property
    def type(self) -> str:
        return "MX"


@dataclass(frozen=True)
class SRV:
    name: str
    priority: int
    weight: int
    port: int
    target: str
    ttl: timedelta = timedelta(0)
    identity: Optional[str] = None

    @property
    def type(self) -> str:
        return "SRV"


@dataclass(frozen=True)
class ServiceBinding:
    """HTTPS (scheme ``https``) or SVCB record."""

    name: str
    priority: int
    target: str
    params: Dict[str, List[str]] = field(default_factory=dict, hash=False)
    scheme: str = "https"
    ttl: timedelta = timedelta(0)
    identity: Optional[str] = None

    @property
    def type(self) -> str:
        return "HTTPS" if self.scheme.lower() == "https" else "SVCB"


@dataclass(frozen=True)
class RR:
    name: str
    type: str
    data: str
    ttl: timedelta = timedelta(0)


Record = Union[Address, CNAME, TXT, MX, SRV, ServiceBinding, RR]

IDENTIFIED_TYPES = (Address, CNAME, TXT, MX, SRV, ServiceBinding)
RECORD_TYPES = IDENTIFIED_TYPES + (RR,)


def record_identity(record) -> str:
    """Return the provider record ID carried by record, or ""."""
    if isinstance(record, IDENTIFIED_TYPES):
        return record.identity or ""
    return ""


# ----------------------------------------------------------------------
# SvcParams presentation format
# ----------------------------------------------------------------------


def _svcb_from_text(params_text: str):
    # Priority and target are placeholders; only the SvcParams are kept
    return dns.rdata.from_text(
        dns.rdataclass.IN, dns.rdatatype.SVCB, f"1 . {params_text}"
    )


def _param_values(param) -> List[str]:
    if param is None:
        return []
    if isinstance(param, svcbbase.MandatoryParam):
        return [svcbbase.key_to_text(key) for key in param.keys]
    if isinstance(param, svcbbase.ALPNParam):
        return [alpn.decode() for alpn in param.ids]
    if isinstance(param, svcbbase.PortParam):
        return [str(param.port)]
    if isinstance(param, (svcbbase.IPv4HintParam, svcbbase.IPv6HintParam)):
        return [str(address) for address in param.addresses]
    # ech and generic keyNNNNN values stay in presentation form
    return [param.to_text().strip('"')]


def parse_svc_params(text: str) -> Dict[str, List[str]]:
    """Parse ``alpn=h2,h3 port=443 no-default-alpn`` into a dict.

    Parsing and validation are done by dnspython's SVCB rdata, so
    unbalanced quotes, unknown or duplicate keys and bad values raise
    :class:`dns.exception.SyntaxError`.
    """
    if not text.strip():
        return {}
    rdata = _svcb_from_text(text)
    return {
        svcbbase.key_to_text(key): _param_values(param)
        for key, param in rdata.params.items()
    }


def format_svc_params(params: Dict[str, List[str]]) -> str:
    """Render params in the canonical form dnspython emits."""
    if not params:
        return ""
    parts = []
    for key, values in params.items():
        parts.append(f'{key}="{",".join(values)}"' if values else key)
    text = _svcb_from_text(" ".join(parts)).to_text()
    # Drop the placeholder priority and target
    fields = text.split(" ", 2)
    return fields[2] if len(fields) > 2 else ""
