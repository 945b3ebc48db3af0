UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def is_unique_violation(exc: Exception) -> bool:
    """True for a PostgREST APIError raised by a unique/primary key constraint"""
    return getattr(exc, "code", None) == UNIQUE_VIOLATION or "duplicate key" in str(exc).lower()


def is_foreign_key_violation(exc: Exception) -> bool:
    return getattr(exc, "code", None) == FOREIGN_KEY_VIOLATION
