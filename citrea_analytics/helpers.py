from decimal import Decimal, localcontext

# ---------------- helpers ----------------
def to_hex(x):
    if x is None: return None
    if isinstance(x, (bytes, bytearray)): return "0x" + bytes(x).hex()
    if isinstance(x, int): return hex(x)
    s = str(x)
    return s if s.startswith("0x") else "0x" + s

def hex_to_int(x):
    if x is None: return None
    if isinstance(x, int): return x
    if isinstance(x, (bytes, bytearray)): return int.from_bytes(x, "big")
    s = str(x)
    return int(s, 16) if s.startswith("0x") else int(s)

def hex_to_bytes(x) -> bytes:
    if isinstance(x, (bytes, bytearray)): return bytes(x)
    s = str(x)
    return bytes.fromhex(s[2:] if s.startswith("0x") else s)

def topic_to_addr(topic) -> str:
    # topics are 32-byte values; address is the last 20 bytes
    h = to_hex(topic)
    if len(h) != 66:
        raise ValueError(f"bad topic length: {h}")
    return "0x" + h[-40:].lower()

def scale_units(value, decimals: int) -> str:
    """Render an integer amount of smallest units as a plain decimal string."""
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = Decimal(int(value)).scaleb(-decimals)
        return format(scaled.normalize() if scaled else Decimal(0), "f")
