"""
Cache key generation.

Keys are ``"{call_type}_{digest}"`` where the digest is a 32-bit signed
rolling hash (``h = h * 31 + code``) over the UTF-16 code units of the
input.  This matches keys already written to durable storage by the
browser client, so an existing cache document stays readable.
"""

_UINT32 = 0xFFFFFFFF


def hash_input(text: str) -> int:
    """Return the signed 32-bit rolling hash of *text*.

    Args:
        text: Arbitrary input string (already semantically reduced).

    Returns:
        Integer in ``[-2**31, 2**31)``.
    """
    encoded = text.encode("utf-16-le", "surrogatepass")
    value = 0
    for i in range(0, len(encoded), 2):
        code = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + code) & _UINT32
    if value & 0x80000000:
        value -= 0x100000000
    return value


def generate_key(call_type: str, text: str) -> str:
    """Build the cache key for *text* under *call_type*."""
    return f"{call_type}_{hash_input(text)}"


def key_type_prefix(cache_key: str) -> str:
    """Return the call-type prefix of a cache key."""
    return cache_key.split("_", 1)[0]
