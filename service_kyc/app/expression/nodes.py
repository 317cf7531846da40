"""
Syntax tree of tag assertion expressions.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Assert:
    """``org.tag@`value```: the user holds ``value`` for ``tag`` under ``org``."""
    org: str
    tag: str
    value: str

    def __str__(self) -> str:
        return f"{self.org}.{self.tag}@`{self.value}`"


@dataclass(frozen=True)
class And:
    left: "Node"
    right: "Node"

    def __str__(self) -> str:
        return f"({self.left} && {self.right})"


@dataclass(frozen=True)
class Or:
    left: "Node"
    right: "Node"

    def __str__(self) -> str:
        return f"({self.left} || {self.right})"


Node = Union[Or, And, Assert]
