"""
# prosefix: rules.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Substitution rules and their compilation.

A rule is declared in a rule document as
````
- expected: «expected»
  pattern: «pattern» | /«pattern»/          (optional)
  patterns: [«pattern», ...]                (optional, used when `pattern` is absent)
  ignorePatternBefore: «pattern»            (optional)
  regexpMustEmpty: $«group»                 (optional)
  specs: [{from: «string», to: «string»}]   (optional)
````
Attributes are staged through setters and the rule is then committed,
which compiles it once; a committed rule is immutable.
"""

import re
from typing import Callable, NamedTuple, Optional, Union

from prosefix.exceptions import (
    CommittedMutateException,
    PatternCompileError,
    SpecMismatchError,
    UncommittedApplyException,
)
from prosefix.utilities import (
    expand_dollar_template,
    is_ascii_letter,
    is_fullwidth_letter,
    strip_slash_delimiters,
    to_fullwidth_alphabet,
    to_halfwidth_alphabet,
)


class Spec(NamedTuple):
    """
    An example pair: applying the rule to `from_` must yield `to`.
    """
    from_: str
    to: str


class CompiledRule(NamedTuple):
    regex_pattern_compiled: re.Pattern
    ignore_before_pattern_compiled: Optional[re.Pattern]
    must_empty_group: Optional[Union[int, str]]

    @property
    def is_context_sensitive(self) -> bool:
        return self.ignore_before_pattern_compiled is not None or self.must_empty_group is not None


class Rule:
    """
    A substitution rule.

    Every match of the rule's pattern is replaced by `expected`,
    a template in which `$1`, `${1}`, `$name`, `${name}` refer to groups and `$$` is a literal dollar.
    With `ignore_pattern_before`, a match is left alone whenever the text preceding it
    (from the very start of the buffer) matches that expression.
    With `regexp_must_empty`, a match is left alone whenever the referenced group captured text.
    """
    _DOLLAR_ANCHOR_REGEX_COMPILED = re.compile(
        pattern=r'''
            (?P<escape> \\ . )
                |
            (?P<character_class> \[ \^? \]? (?: \\ . | [^\]\\] )* \] )
                |
            (?P<dollar> [$] )
        ''',
        flags=re.DOTALL | re.VERBOSE,
    )

    _is_committed: bool
    _expected: str
    _pattern: Optional[str]
    _patterns: list[str]
    _ignore_pattern_before: Optional[str]
    _regexp_must_empty: Optional[str]
    _specs: list['Spec']
    _source_path: Optional[str]
    _index: Optional[int]
    _compiled_rule: Optional['CompiledRule']
    _substitute_function: Optional[Callable[[re.Match], str]]

    def __init__(self, expected: str, source_path: Optional[str] = None, index: Optional[int] = None):
        self._is_committed = False
        self._expected = expected
        self._pattern = None
        self._patterns = []
        self._ignore_pattern_before = None
        self._regexp_must_empty = None
        self._specs = []
        self._source_path = source_path
        self._index = index
        self._compiled_rule = None
        self._substitute_function = None

    def __repr__(self) -> str:
        return f'Rule(expected={self._expected!r}, source_path={self._source_path!r}, index={self._index!r})'

    @property
    def is_committed(self) -> bool:
        return self._is_committed

    @property
    def expected(self) -> str:
        return self._expected

    @property
    def source_path(self) -> Optional[str]:
        return self._source_path

    @property
    def index(self) -> Optional[int]:
        return self._index

    @property
    def compiled_rule(self) -> Optional['CompiledRule']:
        return self._compiled_rule

    @property
    def pattern(self) -> Optional[str]:
        return self._pattern

    @pattern.setter
    def pattern(self, value: Optional[str]):
        if self._is_committed:
            raise CommittedMutateException('error: cannot set `pattern` after `commit()`')

        self._pattern = value

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    @patterns.setter
    def patterns(self, value: list[str]):
        if self._is_committed:
            raise CommittedMutateException('error: cannot set `patterns` after `commit()`')

        self._patterns = list(value)

    @property
    def ignore_pattern_before(self) -> Optional[str]:
        return self._ignore_pattern_before

    @ignore_pattern_before.setter
    def ignore_pattern_before(self, value: Optional[str]):
        if self._is_committed:
            raise CommittedMutateException('error: cannot set `ignore_pattern_before` after `commit()`')

        self._ignore_pattern_before = value

    @property
    def regexp_must_empty(self) -> Optional[str]:
        return self._regexp_must_empty

    @regexp_must_empty.setter
    def regexp_must_empty(self, value: Optional[str]):
        if self._is_committed:
            raise CommittedMutateException('error: cannot set `regexp_must_empty` after `commit()`')

        self._regexp_must_empty = value

    @property
    def specs(self) -> list['Spec']:
        return list(self._specs)

    def add_spec(self, from_: str, to: str):
        if self._is_committed:
            raise CommittedMutateException('error: cannot call `add_spec(...)` after `commit()`')

        self._specs.append(Spec(from_, to))

    def commit(self):
        self._compiled_rule = self.compile()
        self._substitute_function = self.build_substitute_function(self._expected)
        self._is_committed = True

    def compile(self) -> 'CompiledRule':
        regex_pattern = Rule.build_regex_pattern(self._expected, self._pattern, self._patterns)
        if regex_pattern is None:
            raise PatternCompileError('no pattern or expected value specified', None,
                                      self._source_path, self._index)
        regex_pattern_compiled = self._compile_or_raise(regex_pattern, 'pattern')

        ignore_before_pattern_compiled = None
        if self._ignore_pattern_before:
            ignore_before_pattern = Rule.build_ignore_before_pattern(self._ignore_pattern_before)
            ignore_before_pattern_compiled = self._compile_or_raise(ignore_before_pattern, 'ignorePatternBefore')

        must_empty_group = None
        if self._regexp_must_empty:
            must_empty_group = Rule.parse_group_reference(self._regexp_must_empty)
            if must_empty_group is None:
                raise PatternCompileError(f'invalid group reference {self._regexp_must_empty!r} for regexpMustEmpty',
                                          self._regexp_must_empty, self._source_path, self._index)
            if not Rule.has_group(regex_pattern_compiled, must_empty_group):
                raise PatternCompileError(
                    f'regexpMustEmpty {self._regexp_must_empty!r} refers to a group absent from {regex_pattern!r}',
                    self._regexp_must_empty,
                    self._source_path,
                    self._index,
                )

        return CompiledRule(regex_pattern_compiled, ignore_before_pattern_compiled, must_empty_group)

    def _compile_or_raise(self, regex_pattern: str, attribute_name: str) -> re.Pattern:
        try:
            return re.compile(regex_pattern)
        except re.error as re_error:
            raise PatternCompileError(
                f'failed to compile {attribute_name} {regex_pattern!r}: {re_error}',
                regex_pattern,
                self._source_path,
                self._index,
            ) from re_error

    def apply(self, string: str) -> str:
        if not self._is_committed:
            raise UncommittedApplyException('error: cannot call `apply(string)` before `commit()`')

        compiled_rule = self._compiled_rule
        regex_pattern_compiled = compiled_rule.regex_pattern_compiled

        if not compiled_rule.is_context_sensitive:
            return regex_pattern_compiled.sub(self._substitute_function, string)

        segments = []
        last_end = 0
        for match in regex_pattern_compiled.finditer(string):
            segments.append(string[last_end:match.start()])
            if Rule.should_keep_match(compiled_rule, string, match):
                segments.append(match.group())
            else:
                segments.append(self._substitute_function(match))
            last_end = match.end()
        segments.append(string[last_end:])

        return ''.join(segments)

    def validate_specs(self):
        """
        Replay every declared example through the rule itself.
        """
        for spec in self._specs:
            actual = self.apply(spec.from_)
            if actual != spec.to:
                raise SpecMismatchError(spec.from_, spec.to, actual, self._source_path, self._index)

    @staticmethod
    def should_keep_match(compiled_rule: 'CompiledRule', string: str, match: re.Match) -> bool:
        ignore_before_pattern_compiled = compiled_rule.ignore_before_pattern_compiled
        if ignore_before_pattern_compiled is not None:
            if ignore_before_pattern_compiled.search(string, 0, match.start()) is not None:
                return True

        must_empty_group = compiled_rule.must_empty_group
        if must_empty_group is not None:
            if match.group(must_empty_group):
                return True

        return False

    @staticmethod
    def build_substitute_function(expected: str) -> Callable[[re.Match], str]:
        def substitute_function(match: re.Match) -> str:
            return expand_dollar_template(match, expected)

        return substitute_function

    @staticmethod
    def build_regex_pattern(expected: Optional[str], pattern: Optional[str], patterns: list[str]) -> Optional[str]:
        """
        Build the primary expression.

        `pattern` wins over `patterns`, which wins over the folding pattern generated from `expected`.
        Alternatives of `patterns` are tried in the listed order,
        so longer alternatives must be listed before their prefixes.
        """
        if pattern:
            return strip_slash_delimiters(pattern)

        if len(patterns) > 0:
            return '|'.join(strip_slash_delimiters(alternative) for alternative in patterns)

        if expected:
            return Rule.build_case_width_folding_pattern(expected)

        return None

    @staticmethod
    def build_case_width_folding_pattern(expected: str) -> str:
        """
        Build an expression matching `expected` regardless of case and full-width rendering.

        For example `Cookie` becomes `[CcＣｃ][OoＯｏ][OoＯｏ][KkＫｋ][IiＩｉ][EeＥｅ]`.
        """
        character_regexes = []
        for character in expected:
            if is_fullwidth_letter(character):
                character = to_halfwidth_alphabet(character)

            if is_ascii_letter(character):
                upper = character.upper()
                lower = character.lower()
                character_regexes.append(
                    f'[{upper}{lower}{to_fullwidth_alphabet(upper)}{to_fullwidth_alphabet(lower)}]'
                )
            else:
                character_regexes.append(re.escape(character))

        return ''.join(character_regexes)

    @staticmethod
    def build_ignore_before_pattern(ignore_pattern_before: str) -> str:
        """
        Anchor the context expression to the end of the preceding text.

        Every `$` anchor becomes `\\Z`, so that it cannot match before a final newline.
        Expressions already containing an end anchor or an alternation are otherwise left as declared.
        """
        had_dollar_anchor = False

        def substitute_function(match: re.Match) -> str:
            nonlocal had_dollar_anchor
            if match.group('dollar') is None:
                return match.group()

            had_dollar_anchor = True
            return r'\Z'

        ignore_before_pattern = Rule._DOLLAR_ANCHOR_REGEX_COMPILED.sub(substitute_function, ignore_pattern_before)

        if had_dollar_anchor or r'\Z' in ignore_before_pattern or '|' in ignore_before_pattern:
            return ignore_before_pattern

        return ignore_before_pattern + r'\Z'

    @staticmethod
    def parse_group_reference(reference: str) -> Optional[Union[int, str]]:
        match = re.fullmatch(
            pattern=r'''
                [\s]*
                [$]?
                (?:
                    [{] (?P<braced_name> [A-Za-z0-9_]+ ) [}]
                        |
                    (?P<bare_name> [A-Za-z0-9_]+ )
                )
                [\s]*
            ''',
            string=reference,
            flags=re.ASCII | re.VERBOSE,
        )
        if match is None:
            return None

        name = match.group('braced_name') or match.group('bare_name')
        if name.isdigit():
            return int(name)

        return name

    @staticmethod
    def has_group(regex_pattern_compiled: re.Pattern, group: Union[int, str]) -> bool:
        if isinstance(group, int):
            return group <= regex_pattern_compiled.groups

        return group in regex_pattern_compiled.groupindex
