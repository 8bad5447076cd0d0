"""One-line rendering of declarations."""

from __future__ import annotations

from .declarations import Declaration, Var

# Export data may suffix parameter names with a disambiguator, e.g. "a·1".
_DISAMBIGUATOR = "·"


def no_dot(name: str) -> str:
    index = name.find(_DISAMBIGUATOR)
    if index == -1:
        return name
    return name[:index]


def vars_to_string(vars: list[Var]) -> str:
    parts: list[str] = []
    for v in vars:
        name = no_dot(v.name)
        parts.append(f"{name} {v.type}" if name else v.type)
    return ", ".join(parts)


def format_declaration(decl: Declaration) -> str:
    """Render `[(recv T) ]Name(params) (results)`."""
    sig = decl.signature
    if sig is None:
        return f"{decl.name}()"

    prefix = ""
    if sig.recv is not None:
        prefix = f"({vars_to_string([sig.recv])}) "
    return f"{prefix}{decl.name}({vars_to_string(sig.params)}) ({vars_to_string(sig.results)})"
