"""
# prosefix: exceptions.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Exception classes.
"""

from typing import Optional


class CommittedMutateException(Exception):
    pass


class UncommittedApplyException(Exception):
    pass


class RuleLoadError(Exception):
    """
    Base class for errors that make a rule document unusable.

    Carries the offending document path and rule index (either may be unknown)
    so that the declaration can be located and fixed.
    """
    _message: str
    _source_path: Optional[str]
    _rule_index: Optional[int]

    def __init__(self, message: str, source_path: Optional[str] = None, rule_index: Optional[int] = None):
        self._message = message
        self._source_path = source_path
        self._rule_index = rule_index
        super().__init__(RuleLoadError.build_location_prefix(source_path, rule_index) + message)

    @property
    def message(self) -> str:
        """
        The message without its location prefix.
        """
        return self._message

    @property
    def source_path(self) -> Optional[str]:
        return self._source_path

    @property
    def rule_index(self) -> Optional[int]:
        return self._rule_index

    @staticmethod
    def build_location_prefix(source_path: Optional[str], rule_index: Optional[int]) -> str:
        locations = []
        if source_path is not None:
            locations.append(f'`{source_path}`')
        if rule_index is not None:
            locations.append(f'rule {rule_index}')

        if len(locations) == 0:
            return ''

        return ', '.join(locations) + ': '


class PatternCompileError(RuleLoadError):
    _pattern: Optional[str]

    def __init__(self, message: str, pattern: Optional[str],
                 source_path: Optional[str] = None, rule_index: Optional[int] = None):
        self._pattern = pattern
        super().__init__(message, source_path, rule_index)

    @property
    def pattern(self) -> Optional[str]:
        return self._pattern


class SpecMismatchError(RuleLoadError):
    _from: str
    _to: str
    _actual: str

    def __init__(self, from_: str, to: str, actual: str,
                 source_path: Optional[str] = None, rule_index: Optional[int] = None):
        self._from = from_
        self._to = to
        self._actual = actual
        message = f'spec failed: {from_!r} expected {to!r}, but got {actual!r}'
        super().__init__(message, source_path, rule_index)

    @property
    def from_(self) -> str:
        return self._from

    @property
    def to(self) -> str:
        return self._to

    @property
    def actual(self) -> str:
        return self._actual


class ImportResolutionError(RuleLoadError):
    _import_chain: tuple[str, ...]

    def __init__(self, message: str, import_chain: tuple[str, ...] = (),
                 source_path: Optional[str] = None, rule_index: Optional[int] = None):
        self._import_chain = tuple(import_chain)
        super().__init__(message, source_path, rule_index)

    @property
    def import_chain(self) -> tuple[str, ...]:
        return self._import_chain


class SkippedRuleWarning(UserWarning):
    pass
