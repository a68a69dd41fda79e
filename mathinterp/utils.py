import enum


class PrintableEnum(enum.Enum):
    def __str__(self) -> str:
        return self.name

    __repr__ = __str__


def format_number(value: float) -> str:
    """14.0 -> '14', 0.5 -> '0.5'"""
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)
