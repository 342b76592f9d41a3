"""Capability bundles that extend a Blueprint's callable surface."""

from __future__ import annotations

import keyword
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

# Names an addon may not replace: the state slot and the call protocol.
RESERVED_MEMBERS: frozenset[str] = frozenset({"__call__", "__init__", "__new__", "_state", "state"})


@dataclass(frozen=True, eq=False)
class Addon:
    """A named table of members merged onto a Blueprint.

    Functions in `core` become methods of the derived Blueprint class (so `self`
    is the blueprint they were attached to); any other value becomes a class
    attribute. When two addons, or an addon and the base interface, define the
    same member, the most recently attached addon wins.
    """

    name: str
    core: Mapping[str, Any] = field(default_factory=dict)
    doc: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise TypeError("Addon.name must be a non-empty string")
        object.__setattr__(self, "name", self.name.strip())

        if not isinstance(self.core, Mapping):
            raise TypeError(f"Addon.core must be a mapping (type={type(self.core).__name__})")
        members: dict[str, Any] = {}
        for member, value in self.core.items():
            if not isinstance(member, str) or not member.isidentifier() or keyword.iskeyword(member):
                raise ValueError(f"Addon {self.name} has invalid member name: {member!r}")
            if member in RESERVED_MEMBERS:
                raise ValueError(f"Addon {self.name} may not override reserved member: {member}")
            members[member] = value
        object.__setattr__(self, "core", MappingProxyType(members))

    def members(self) -> tuple[str, ...]:
        return tuple(sorted(self.core.keys()))
