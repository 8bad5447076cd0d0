from __future__ import annotations

from dataclasses import dataclass

from .declarations import Declaration, Var


@dataclass(frozen=True)
class TypeFilterSet:
    args: tuple[str, ...] = ()
    rets: tuple[str, ...] = ()
    # AND: every listed type must be covered; OR: any listed type is enough.
    match_all: bool = False

    @property
    def empty(self) -> bool:
        return not self.args and not self.rets


def check_types(tuple_vars: list[Var], wanted: tuple[str, ...] | list[str]) -> tuple[bool, bool]:
    """Compare rendered var types with the wanted type names.

    Returns (any, all): `any` is set when at least one var has a wanted type;
    `all` is set when every wanted type was found among the vars. With nothing
    wanted, `any` is False and `all` is True.
    """
    matched = [False] * len(wanted)
    found_any = False
    for v in tuple_vars:
        for i, t in enumerate(wanted):
            if v.type == t:
                matched[i] = True
                found_any = True
    return found_any, all(matched)


def matches(decl: Declaration, filters: TypeFilterSet) -> bool:
    sig = decl.signature
    if sig is None:
        # Builtins have no callable signature.
        return False

    any_arg, all_arg = check_types(sig.params, filters.args)
    any_ret, all_ret = check_types(sig.results, filters.rets)

    if filters.match_all:
        return all_arg and all_ret
    return any_arg or any_ret
