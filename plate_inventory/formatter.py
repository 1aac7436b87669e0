# plate_inventory/formatter.py

SEPARATOR = "-"
PREFIX_LENGTH = 3


def format_plate(raw: str) -> str:
    """
    Canonical display form of a plate: dashes removed, upper-cased, and a
    single dash after the third character when longer than three characters.

    >>> format_plate("abc123")
    'ABC-123'
    >>> format_plate("ab")
    'AB'
    """
    cleaned = (raw or "").replace(SEPARATOR, "").upper()
    if len(cleaned) > PREFIX_LENGTH:
        return f"{cleaned[:PREFIX_LENGTH]}{SEPARATOR}{cleaned[PREFIX_LENGTH:]}"
    return cleaned
