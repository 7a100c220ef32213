from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def qround(d: Decimal) -> Decimal:
    # ROUND_HALF_UP on Decimal rounds half away from zero, negatives included
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    Numeric columns come back as Decimal on postgres and as float on sqlite;
    going through str keeps both exact to the cent.
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
