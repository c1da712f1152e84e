"""
# prosefix: utilities.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Common utility functions.
"""

import re
from typing import Optional

_FULLWIDTH_OFFSET = ord('Ａ') - ord('A')


def none_to_empty_string(string: Optional[str]) -> str:
    if string is None:
        return ''

    return string


def is_ascii_letter(character: str) -> bool:
    return 'A' <= character <= 'Z' or 'a' <= character <= 'z'


def is_fullwidth_letter(character: str) -> bool:
    return 'Ａ' <= character <= 'Ｚ' or 'ａ' <= character <= 'ｚ'


def to_fullwidth_alphabet(string: str) -> str:
    """
    Convert ASCII letters to their full-width forms, leaving everything else alone.
    """
    return ''.join(
        chr(ord(character) + _FULLWIDTH_OFFSET) if is_ascii_letter(character) else character
        for character in string
    )


def to_halfwidth_alphabet(string: str) -> str:
    """
    Convert full-width Latin letters to ASCII, leaving everything else alone.
    """
    return ''.join(
        chr(ord(character) - _FULLWIDTH_OFFSET) if is_fullwidth_letter(character) else character
        for character in string
    )


def strip_slash_delimiters(pattern: str) -> str:
    """
    Strip one enclosing pair of slashes, as in `/«pattern»/`.
    """
    if len(pattern) >= 2 and pattern.startswith('/') and pattern.endswith('/'):
        return pattern[1:-1]

    return pattern


def expand_dollar_template(match: re.Match, template: str) -> str:
    """
    Expand a dollar-style replacement template against a match.

    Recognised references:
    - `$$` for a literal dollar sign
    - `$«name»` where «name» is the longest run of letters, digits and underscores
    - `${«name»}`
    A «name» consisting of digits refers to a numbered group, otherwise to a named group.
    A reference to a group that does not exist or did not participate expands to the empty string.
    A dollar sign not starting a valid reference is kept literally.
    """
    if '$' not in template:
        return template

    return re.sub(
        pattern=r'''
            [$]
            (?:
                (?P<dollar> [$] )
                    |
                [{] (?P<braced_name> [A-Za-z0-9_]+ ) [}]
                    |
                (?P<bare_name> [A-Za-z0-9_]+ )
            )
        ''',
        repl=lambda reference_match: _resolve_dollar_reference(match, reference_match),
        string=template,
        flags=re.ASCII | re.VERBOSE,
    )


def _resolve_dollar_reference(match: re.Match, reference_match: re.Match) -> str:
    if reference_match.group('dollar') is not None:
        return '$'

    name = reference_match.group('braced_name')
    if name is None:
        name = reference_match.group('bare_name')

    if name.isdigit():
        group_index = int(name)
        if group_index > match.re.groups:
            return ''
        return none_to_empty_string(match.group(group_index))

    if name not in match.re.groupindex:
        return ''

    return none_to_empty_string(match.group(name))
