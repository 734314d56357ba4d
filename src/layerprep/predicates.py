"""Compile filter expressions into attribute-mapping predicates.

Accepted forms:

- a callable ``(Mapping) -> bool``, used as is;
- a mapping: every key must be present and match. A callable value is
  applied to the attribute value, a set/list/tuple means "any of", anything
  else is compared with ``==``;
- a string of comma-separated clauses, all of which must hold:
  ``key=value``, ``key!=value``, ``key`` (present and truthy) and ``!key``
  (absent or falsy). Values compare as strings;
- ``None`` or an empty string, which accepts everything.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from layerprep.errors import PredicateError

Predicate = Callable[[Mapping[str, Any]], bool]

_CLAUSE_RE = re.compile(r"^\s*(?P<neg>!)?\s*(?P<key>[\w.-]+)\s*(?:(?P<op>!=|=)\s*(?P<value>.*?))?\s*$")


def accept_all(attrs: Mapping[str, Any]) -> bool:
    return True


def reject_all(attrs: Mapping[str, Any]) -> bool:
    return False


def _matches(expected: Any, actual: Any) -> bool:
    if callable(expected):
        return bool(expected(actual))
    if isinstance(expected, (set, frozenset, list, tuple)):
        return actual in expected
    return actual == expected


def _compile_mapping(expr: Mapping[str, Any]) -> Predicate:
    items = list(expr.items())

    def predicate(attrs: Mapping[str, Any]) -> bool:
        return all(key in attrs and _matches(expected, attrs[key]) for key, expected in items)

    return predicate


def _compile_clause(expr: str, clause: str) -> Predicate:
    m = _CLAUSE_RE.match(clause)
    if m is None:
        raise PredicateError(expr, f"cannot parse clause {clause.strip()!r}")
    key, op, value = m.group("key"), m.group("op"), m.group("value")
    negated = m.group("neg") is not None

    if op is None:
        if negated:
            return lambda attrs: not attrs.get(key)
        return lambda attrs: bool(attrs.get(key))
    if negated:
        raise PredicateError(expr, f"'!' cannot prefix a comparison in {clause.strip()!r}")
    if op == "=":
        return lambda attrs: key in attrs and str(attrs[key]) == value
    return lambda attrs: key not in attrs or str(attrs[key]) != value


def _compile_string(expr: str) -> Predicate:
    clauses = [c for c in expr.split(",") if c.strip()]
    if not clauses:
        return accept_all
    compiled = [_compile_clause(expr, c) for c in clauses]

    def predicate(attrs: Mapping[str, Any]) -> bool:
        return all(p(attrs) for p in compiled)

    return predicate


def compile_predicate(expr: Any) -> Predicate:
    """Turn a filter expression into a boolean test over an attribute mapping."""
    if expr is None:
        return accept_all
    if callable(expr):
        return expr
    if isinstance(expr, Mapping):
        return _compile_mapping(expr)
    if isinstance(expr, str):
        return _compile_string(expr)
    raise PredicateError(expr, f"unsupported expression type {type(expr).__name__}")
