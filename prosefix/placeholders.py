"""
# prosefix: placeholders.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Placeholder protection.
"""

import re
import secrets
from typing import Optional


class PlaceholderMap:
    """
    Association of placeholder tokens with the strings they stand for.

    A string is protected by replacing it with a token consisting of code points in the Unicode Private Use Area.
    Specifically, the token shall be of the form `«marker»«run_characters»«marker»`,
    where «marker» is `U+F8FF`, and «run_characters» are between `U+E000` and `U+E0FF`,
    each representing a byte of `«nonce»-«counter»`.
    «nonce» is random and fixed for the lifetime of the map, «counter» increases with every token,
    so tokens are unique within a map and unlikely to collide with those of any other map.

    A fresh map is to be used for every protect/restore cycle.
    Occurrences of «marker» already present in the input should be protected first
    (see `protect_marker_occurrences(...)`), lest those occurrences be confounding.

    It is assumed the user will not define replacement rules
    that tamper with strings of the form `«marker»«run_characters»«marker»`.
    """
    MARKER = '\uF8FF'
    _RUN_CHARACTER_MIN = '\uE000'
    _RUN_CHARACTER_MAX = '\uE0FF'

    _RUN_CODE_POINT_MIN = ord(_RUN_CHARACTER_MIN)

    _TOKEN_PATTERN_COMPILED = re.compile(
        pattern=f'{MARKER} [{_RUN_CHARACTER_MIN}-{_RUN_CHARACTER_MAX}]+ {MARKER}',
        flags=re.VERBOSE,
    )

    _nonce: str
    _counter: int
    _original_from_token: dict[str, str]

    def __init__(self, nonce: Optional[str] = None):
        if nonce is None:
            nonce = secrets.token_hex(4)

        self._nonce = nonce
        self._counter = 0
        self._original_from_token = {}

    def __len__(self) -> int:
        return len(self._original_from_token)

    def __contains__(self, token: str) -> bool:
        return token in self._original_from_token

    @property
    def tokens(self) -> list[str]:
        return list(self._original_from_token)

    def original_for(self, token: str) -> Optional[str]:
        return self._original_from_token.get(token)

    def protect(self, original: str) -> str:
        """
        Protect a string by issuing a fresh token for it.
        """
        self._counter += 1
        token = PlaceholderMap.build_token(f'{self._nonce}-{self._counter}')

        self._original_from_token[token] = original

        return token

    def protect_marker_occurrences(self, string: str) -> str:
        """
        Replace occurrences of «marker» with a token.
        """
        return re.sub(
            pattern=PlaceholderMap.MARKER,
            repl=lambda _: self.protect(PlaceholderMap.MARKER),
            string=string,
        )

    def restore(self, string: str) -> str:
        """
        Restore every known token in a string to the string it stands for.

        Protected strings may themselves contain earlier tokens, so restoration recurses.
        Tokens absent from the map are left untouched.
        """
        return PlaceholderMap._TOKEN_PATTERN_COMPILED.sub(self._restore_substitute_function, string)

    def _restore_substitute_function(self, token_match: re.Match) -> str:
        token = token_match.group()

        try:
            original = self._original_from_token[token]
        except KeyError:
            return token

        return self.restore(original)

    @staticmethod
    def build_token(string: str) -> str:
        marker = PlaceholderMap.MARKER
        run_characters = ''.join(
            chr(byte + PlaceholderMap._RUN_CODE_POINT_MIN)
            for byte in string.encode()
        )

        return f'{marker}{run_characters}{marker}'

    @staticmethod
    def contains_token(string: str) -> bool:
        return PlaceholderMap._TOKEN_PATTERN_COMPILED.search(string) is not None
