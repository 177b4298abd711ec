from ipaddress import ip_address


def _strip_forwarded_for(value: str) -> str:
    # RFC 7239: for=192.0.2.60;proto=http, for="[2001:db8::1]:4711"
    for part in value.split(";"):
        key, sep, raw = part.strip().partition("=")
        if sep and key.strip().lower() == "for":
            value = raw.strip().strip('"')
            break
    if value.startswith("["):
        return value[1:].split("]", 1)[0]
    return value


def normalize_ip(value: str | None) -> str | None:
    """Canonical text form of an address, or ``None`` when unusable.

    Bans are keyed by this form, so ``2001:DB8::1`` and ``2001:db8::1``
    compare equal.
    """
    if not value:
        return None

    candidate = _strip_forwarded_for(value.split(",", 1)[0].strip())
    if not candidate or candidate.lower() == "unknown":
        return None
    try:
        return str(ip_address(candidate))
    except ValueError:
        return None
