"""IP address utilities for lookup validation and cache keys"""
import ipaddress
import re

ZONE_ID_PATTERN = re.compile(r"[0-9A-Za-z]+")


def is_valid_ip(ip: str) -> bool:
    """
    Validate IP address format

    Accepts dotted-quad IPv4 and every standard IPv6 textual form
    (full, "::" compressed, embedded IPv4, "%zone" suffixed). Zone ids
    are limited to ASCII letters and digits.

    Args:
        ip: IP address string

    Returns:
        True if valid IPv4 or IPv6 address, False otherwise
    """
    if not isinstance(ip, str) or ip != ip.strip():
        return False
    if "%" in ip and not ZONE_ID_PATTERN.fullmatch(ip.split("%", 1)[1]):
        return False
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def normalize_ip(ip: str) -> str:
    """
    Return the canonical text form of an IP address

    IPv6 addresses are compressed and lower-cased so that equivalent
    spellings map to the same cache key. IPv4-mapped addresses keep
    their dotted tail. The zone id, if any, is kept.

    Raises:
        ValueError: If ip is not a valid address
    """
    if not is_valid_ip(ip):
        raise ValueError(f"Invalid IP address: {ip!r}")
    address = ipaddress.ip_address(ip)
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        zone = f"%{address.scope_id}" if address.scope_id else ""
        return f"::ffff:{address.ipv4_mapped}{zone}"
    return str(address)
