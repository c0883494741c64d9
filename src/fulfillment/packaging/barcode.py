"""UPC-A barcodes for packaging SKUs.

Boxes and mailers are labelled with a UPC derived from their SKU so the pack
station scanner can read them like any product. The derivation must stay
stable: printed labels already in the warehouse depend on it.
"""

_INT32 = 2**32


def _to_int32(value: int) -> int:
    value %= _INT32
    return value - _INT32 if value >= 2**31 else value


def sku_hash(sku: str) -> int:
    """Signed 32-bit rolling hash of the SKU (h * 31 + code point)."""
    h = 0
    for char in sku:
        h = _to_int32((h << 5) - h + ord(char))
    return h


def upc_check_digit(digits: str) -> int:
    odd = sum(int(d) for d in digits[0::2])
    even = sum(int(d) for d in digits[1::2])
    return (10 - ((odd * 3 + even) % 10)) % 10


def upc_from_sku(sku: str | None) -> str:
    """Twelve-digit UPC-A for a SKU, or an empty string when there is no SKU."""
    if not sku:
        return ""
    base = str(abs(sku_hash(sku))).zfill(11)[-11:]
    return base + str(upc_check_digit(base))
