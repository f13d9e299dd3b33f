"""Integer operations with the language's arithmetic semantics."""


def int_add(left: int, right: int) -> int:
    return left + right


def int_sub(left: int, right: int) -> int:
    return left - right


def int_mul(left: int, right: int) -> int:
    return left * right


def int_div(dividend: int, divisor: int) -> int:
    """Integer division truncating toward zero (-7 / 2 == -3)."""
    if divisor == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


def int_mod(dividend: int, divisor: int) -> int:
    """Remainder matching int_div: takes the sign of the dividend (-7 % 2 == -1)."""
    if divisor == 0:
        raise ZeroDivisionError("integer modulo by zero")
    return dividend - divisor * int_div(dividend, divisor)
