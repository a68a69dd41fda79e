import math
from dataclasses import dataclass
from typing import Callable

from mathinterp.result import Err, Ok, Result

FloatFunc = Callable[[float], float]


@dataclass(frozen=True)
class BuiltinFunc:
    name: str
    fn: FloatFunc
    arity: int = 1

    def apply(self, arg: float) -> Result[float, Exception]:
        try:
            return Ok(self.fn(arg))
        except (ValueError, OverflowError) as e:
            return Err(e)


BUILTIN_FUNCS: dict[str, BuiltinFunc] = dict()


def register_builtin_func(name: str):
    def decorator(fn: FloatFunc) -> FloatFunc:
        BUILTIN_FUNCS[name] = BuiltinFunc(name=name, fn=fn)
        return fn

    return decorator


@register_builtin_func("sin")
def sin_(arg: float) -> float:
    return math.sin(arg)


@register_builtin_func("cos")
def cos_(arg: float) -> float:
    return math.cos(arg)


@register_builtin_func("tan")
def tan_(arg: float) -> float:
    return math.tan(arg)


@register_builtin_func("log")
def log_(arg: float) -> float:
    """Natural logarithm"""
    return math.log(arg)


@register_builtin_func("exp")
def exp_(arg: float) -> float:
    return math.exp(arg)
