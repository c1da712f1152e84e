"""
# prosefix: engine.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

The ordered application of rules to protected text.
"""

import warnings
from typing import NamedTuple, TYPE_CHECKING

from prosefix.constants import VERBOSE_MODE_DIVIDER_SYMBOL_COUNT
from prosefix.exceptions import SkippedRuleWarning
from prosefix.placeholders import PlaceholderMap
from prosefix.rules import Rule
from prosefix.spans import SpanProtector

if TYPE_CHECKING:
    from prosefix.config import Config


class Change(NamedTuple):
    """
    A rule that altered the buffer, with whole-buffer snapshots before and after it.
    """
    rule_index: int
    rule: 'Rule'
    before: str
    after: str


class ReplaceResult(NamedTuple):
    original: str
    result: str
    changed: bool
    changes: tuple['Change', ...]


class ReplacementEngine:
    """
    Object applying the rules of a config, in order, to text whose structured spans are protected.

    Holds no per-call state, so a single engine may be shared between threads.
    """
    _config: 'Config'
    _span_protector: 'SpanProtector'
    _protect_spans: bool
    _verbose_mode_enabled: bool

    def __init__(self, config: 'Config', protect_spans: bool = True, protect_shortcodes: bool = True,
                 verbose_mode_enabled: bool = False):
        self._config = config
        self._span_protector = SpanProtector(protect_shortcodes)
        self._protect_spans = protect_spans
        self._verbose_mode_enabled = verbose_mode_enabled

    @property
    def config(self) -> 'Config':
        return self._config

    def replace_string(self, text: str) -> 'ReplaceResult':
        if self._protect_spans:
            string, placeholder_map = self._span_protector.protect(text)
        else:
            string, placeholder_map = text, PlaceholderMap()

        changes = []
        for rule_index, rule in enumerate(self._config.rules):
            if rule.compiled_rule is None:
                warnings.warn(
                    f'warning: rule {rule_index} (expected {rule.expected!r}) has no compiled pattern; skipped',
                    SkippedRuleWarning,
                )
                continue

            string_before = string
            string = rule.apply(string)
            string_after = string

            if self._verbose_mode_enabled:
                ReplacementEngine.print_verbose(rule_index, rule,
                                                placeholder_map.restore(string_before),
                                                placeholder_map.restore(string_after))

            if string_before != string_after:
                changes.append(
                    Change(
                        rule_index=rule_index,
                        rule=rule,
                        before=placeholder_map.restore(string_before),
                        after=placeholder_map.restore(string_after),
                    )
                )

        result = self._span_protector.restore(string, placeholder_map)

        return ReplaceResult(
            original=text,
            result=result,
            changed=len(changes) > 0,
            changes=tuple(changes),
        )

    @staticmethod
    def print_verbose(rule_index: int, rule: 'Rule', string_before: str, string_after: str):
        if string_before == string_after:
            no_change_indicator = ' (no change)'
        else:
            no_change_indicator = ''

        print('<' * VERBOSE_MODE_DIVIDER_SYMBOL_COUNT + f' BEFORE rule {rule_index} ({rule.expected})')
        print(string_before)
        print('=' * VERBOSE_MODE_DIVIDER_SYMBOL_COUNT + no_change_indicator)
        print(string_after)
        print('>' * VERBOSE_MODE_DIVIDER_SYMBOL_COUNT + f' AFTER rule {rule_index} ({rule.expected})')
        print('\n\n\n\n')
