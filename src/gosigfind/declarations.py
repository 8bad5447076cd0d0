from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Var:
    name: str  # may be empty for unnamed params/results
    type: str  # canonical go/types rendering, variadic params as "...T"


@dataclass(frozen=True)
class Signature:
    params: list[Var]
    results: list[Var]
    recv: Var | None = None
    variadic: bool = False


@dataclass(frozen=True)
class ScopeObject:
    name: str
    kind: str  # func, type, builtin, var, const or other
    pkg: str
    signature: Signature | None = None
    methods: list["ScopeObject"] = field(default_factory=list)


@dataclass(frozen=True)
class PackageScope:
    path: str
    objects: list[ScopeObject]


@dataclass(frozen=True)
class Declaration:
    """A function or method exposed by a package.

    `pkg` is recorded explicitly rather than looked up from the function object:
    export data loaded for precompiled packages does not always attribute
    methods to a package.
    """

    pkg: str
    name: str
    signature: Signature | None

    @property
    def is_method(self) -> bool:
        return self.signature is not None and self.signature.recv is not None
