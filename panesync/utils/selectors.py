"""CSS-like selectors for locating panes in a widget tree.

Supported syntax is a comma-separated list of compound selectors. Each
compound is an optional type name (a Qt class name or `*`) followed by any
number of `.class`, `#objectName` and `[attribute]` tests with the operators
`=`, `*=`, `^=`, `$=` and `~=`. Descendant combinators are not supported.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pyparsing import (Group, Literal, Opt, ParseException, QuotedString,
                       Suppress, Word, ZeroOrMore, alphanums, one_of)


class SelectorError(ValueError):
    pass


@dataclass(frozen=True)
class AttributeTest:
    name: str
    operator: str | None = None
    value: str = ''

    def matches(self, actual: str | None) -> bool:
        if actual is None:
            return False
        if self.operator is None:
            return True
        if self.operator == '=':
            return actual == self.value
        if self.operator == '~=':
            return self.value in actual.split()
        # Substring-style operators never match an empty needle.
        if not self.value:
            return False
        if self.operator == '*=':
            return self.value in actual
        if self.operator == '^=':
            return actual.startswith(self.value)
        if self.operator == '$=':
            return actual.endswith(self.value)
        return False


@dataclass(frozen=True)
class CompoundSelector:
    type_name: str | None = None
    classes: tuple[str, ...] = ()
    object_names: tuple[str, ...] = ()
    attributes: tuple[AttributeTest, ...] = ()

    def matches(self, candidate) -> bool:
        if self.type_name not in (None, '*') and self.type_name not in candidate.type_names():
            return False
        style_classes = set(candidate.style_classes)
        if any(name not in style_classes for name in self.classes):
            return False
        if any(name != candidate.object_name for name in self.object_names):
            return False
        return all(test.matches(_attribute_value(candidate, test.name))
                   for test in self.attributes)


@dataclass(frozen=True)
class SelectorList:
    text: str
    compounds: tuple[CompoundSelector, ...]

    def matches(self, candidate) -> bool:
        return any(compound.matches(candidate) for compound in self.compounds)

    def __str__(self):
        return self.text


def _attribute_value(candidate, name: str) -> str | None:
    if name == 'class':
        return ' '.join(candidate.style_classes) or None
    if name in ('id', 'objectName'):
        return candidate.object_name or None
    return candidate.attribute(name)


def _build_grammar():
    identifier = Word(alphanums + '_-')
    attribute_value = (QuotedString(quote_char='"', esc_char='\\')
                       | QuotedString(quote_char="'", esc_char='\\')
                       | Word(alphanums + '_-./:'))
    attribute_operator = one_of('= *= ^= $= ~=')
    class_selector = Group(Literal('.') + identifier)
    id_selector = Group(Literal('#') + identifier)
    attribute_selector = Group(Literal('[') + identifier
                               + Opt(attribute_operator + attribute_value)
                               + Suppress(']'))
    type_selector = Group(Literal('*') | identifier)
    simple_selector = class_selector | id_selector | attribute_selector
    # Parts after the first must touch, otherwise `a .b` would silently read as `a.b`.
    attached_selector = simple_selector.copy().leave_whitespace()
    compound = Group((type_selector + ZeroOrMore(attached_selector))
                     | (simple_selector + ZeroOrMore(attached_selector)))
    return compound + ZeroOrMore(Suppress(',') + compound)


_GRAMMAR = _build_grammar()


def _compound_from_parts(parts: list) -> CompoundSelector:
    type_name = None
    classes = []
    object_names = []
    attributes = []
    for part in parts:
        if len(part) == 1:
            type_name = part[0]
        elif part[0] == '.':
            classes.append(part[1])
        elif part[0] == '#':
            object_names.append(part[1])
        elif len(part) == 2:
            attributes.append(AttributeTest(part[1]))
        else:
            attributes.append(AttributeTest(part[1], part[2], part[3]))
    return CompoundSelector(type_name, tuple(classes), tuple(object_names),
                            tuple(attributes))


@lru_cache(maxsize=256)
def parse_selector(text: str) -> SelectorList:
    """Parse `text` into a `SelectorList`, raising `SelectorError` when invalid."""
    text = (text or '').strip()
    if not text:
        raise SelectorError('empty selector')
    try:
        parsed = _GRAMMAR.parse_string(text, parse_all=True).as_list()
    except ParseException as exception:
        raise SelectorError(f'invalid selector {text!r}: {exception}') from exception
    return SelectorList(text, tuple(_compound_from_parts(parts) for parts in parsed))
