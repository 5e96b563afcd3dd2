"""Symbol validation utilities."""

from stockdeck.core.exceptions import DataValidationError

MAX_SYMBOL_LENGTH = 10


def is_valid_symbol(symbol: str) -> bool:
    """
    Validate stock/index symbol format.

    Allows:
    - Alphanumeric characters (A-Z, 0-9)
    - Periods (.) for class shares (e.g., BRK.B)
    - Hyphens (-) for some tickers
    - Caret (^) for index symbols (e.g., ^VIX, ^GSPC)

    Args:
        symbol: The symbol to validate (should already be uppercase/stripped)

    Returns:
        True if symbol format is valid, False otherwise
    """
    if not symbol or len(symbol) > MAX_SYMBOL_LENGTH:
        return False
    cleaned = symbol.replace("^", "").replace(".", "").replace("-", "")
    return cleaned.isalnum()


def normalize_symbol(symbol: str) -> str:
    """
    Normalize a symbol to uppercase and stripped.

    Args:
        symbol: The symbol to normalize

    Returns:
        Uppercase, stripped symbol
    """
    return symbol.upper().strip()


def require_symbol(symbol: str) -> str:
    """Normalize ``symbol`` and reject malformed values.

    Raises:
        DataValidationError: If the normalized symbol is not a valid ticker
    """
    normalized = normalize_symbol(symbol or "")
    if not is_valid_symbol(normalized):
        raise DataValidationError(f"Invalid symbol format: {symbol!r}")
    return normalized


def normalize_tags(tags: list[str] | set[str] | None) -> list[str]:
    """Strip, drop blanks and de-duplicate tags, preserving first-seen order."""
    if not tags:
        return []
    cleaned = [t.strip() for t in tags if t and t.strip()]
    return list(dict.fromkeys(cleaned))
