import math
from collections.abc import Iterator

from mathinterp.result import Err, Ok, Result

CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}


class UnboundVariableError(KeyError):
    pass


class SymbolTable:
    """Variable name to value bindings shared by every evaluation that receives this table.

    The caller owns the table and passes it into each evaluation; values written by the
    caller (e.g. the current ``x`` while sampling a range) are seen by the very next
    evaluation. Not thread-safe: give each concurrent evaluator its own table.
    """

    def __init__(self, variables: dict[str, float] | None = None, with_constants: bool = True) -> None:
        self._variables: dict[str, float] = dict(CONSTANTS) if with_constants else dict()
        if variables:
            self._variables.update(variables)

    def get(self, name: str) -> Result[float, UnboundVariableError]:
        if name in self._variables:
            return Ok(self._variables[name])
        return Err(UnboundVariableError(name))

    def set(self, name: str, value: float) -> None:
        self._variables[name] = float(value)

    def __getitem__(self, name: str) -> float:
        return self.get(name).unwrap()

    def __setitem__(self, name: str, value: float) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def items(self) -> list[tuple[str, float]]:
        return list(self._variables.items())

    def __repr__(self) -> str:
        return f"SymbolTable({self._variables!r})"
