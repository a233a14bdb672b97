from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, TypeAlias


Operator: TypeAlias = Literal["+", "-", "*", "/"]


class Exploding(Enum):
    NONE = "none"
    ONCE = "once"
    INDEFINITE = "indefinite"


@dataclass(frozen=True)
class KeepHighest:
    count: int


@dataclass(frozen=True)
class KeepLowest:
    count: int


@dataclass(frozen=True)
class DropHighest:
    count: int


@dataclass(frozen=True)
class DropLowest:
    count: int


# None means no keep/drop policy.
KeepDrop: TypeAlias = KeepHighest | KeepLowest | DropHighest | DropLowest


@dataclass(frozen=True)
class DiceRoll:
    """What to roll for a single dice term, e.g. ``4d6kh3``."""

    num_dice: int
    die_size: int
    exploding: Exploding = Exploding.NONE
    keep_drop: KeepDrop | None = None
    reroll: int | None = None

    def __post_init__(self) -> None:
        if self.num_dice < 0:
            raise ValueError(f"num_dice must not be negative, got {self.num_dice}")
        if self.die_size <= 0:
            raise ValueError(f"die_size must be positive, got {self.die_size}")
        if self.keep_drop is not None and self.keep_drop.count <= 0:
            raise ValueError(f"keep/drop count must be positive, got {self.keep_drop.count}")
        if self.reroll is not None and self.reroll <= 0:
            raise ValueError(f"reroll threshold must be positive, got {self.reroll}")


@dataclass(frozen=True)
class Number:
    value: int


@dataclass(frozen=True)
class Dice:
    roll: DiceRoll


@dataclass(frozen=True)
class BinaryOp:
    left: Expr
    operator: Operator
    right: Expr


@dataclass(frozen=True)
class Function:
    name: str
    argument: Expr


Expr: TypeAlias = Number | Dice | BinaryOp | Function


@dataclass(frozen=True)
class ParsedNotation:
    input: str
    expression: Expr
    rolls: list[DiceRoll]
    normalized_expression: str
