from dns import name
from dns.exception import DNSException


def normalize_zone(zone: str) -> str:
    """Strip a single trailing dot, the API expects bare domain names."""
    if zone.endswith("."):
        return zone[:-1]
    return zone


def relative_name(record_name: str, zone: str) -> str:
    """Express record_name relative to zone.

    Names without a trailing dot are already relative and are returned
    unchanged (an empty name is the apex, "@"). Absolute names inside the
    zone are relativized; the zone itself becomes "@". Absolute names
    outside the zone lose their trailing dot and are otherwise kept.
    """
    if not record_name:
        return "@"
    if not record_name.endswith("."):
        return record_name

    if not zone.endswith("."):
        zone = f"{zone}."

    try:
        fqdn = name.from_text(record_name)
        origin = name.from_text(zone)
    except DNSException:
        return record_name.rstrip(".")

    if not fqdn.is_subdomain(origin):
        return record_name.rstrip(".")
    return fqdn.relativize(origin).to_text()
