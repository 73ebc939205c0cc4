import random
import string


def _random_block(length: int = 8) -> str:
    """
    Return a random string of uppercase letters and digits.
    """
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choices(alphabet, k=length))


def generate_user_id(prefix: str = "ID") -> str:
    """
    Generate a short ID like 'EMP-1F2A9C3D' or 'ID-8K2L0P9Q'.

    Used by SQLAlchemy as a column default, which calls it with zero
    positional arguments, so `prefix` must stay optional.
    """
    block = _random_block(8)
    if prefix:
        return f"{prefix}-{block}"
    return block


def generate_employee_id() -> str:
    return generate_user_id("EMP")


def generate_code(prefix: str, length: int = 8) -> str:
    """
    Human-typeable code such as 'TRN-7KQ2M9XA' (printed under QR images).
    """
    return f"{prefix}-{_random_block(length)}"
