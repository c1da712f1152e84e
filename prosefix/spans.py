"""
# prosefix: spans.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Detection and masking of structured spans.

Spans are masked in the following order, each pass working on the output of the previous:
````
fenced code blocks        ```«info»\n«code»```  or  ~~~«info»\n«code»~~~
inline code spans         `«code»`
inline links              [«text»](«url»)
reference link usages     [«text»][«label»]
reference definitions     [«label»]: «url»
shortcodes                {{< «name» ... >}}«content»{{< /«name» >}}, {{< «name» ... >}},
                          {{% «name» ... %}}«content»{{% /«name» %}}, {{% «name» ... %}}
````
"""

import re
from typing import NamedTuple, Optional

from prosefix.constants import PAIRED_SHORTCODE, SELF_CLOSING_SHORTCODE
from prosefix.placeholders import PlaceholderMap


class Shortcode(NamedTuple):
    kind: str
    name: str
    content: str
    position: int
    length: int

    @property
    def end(self) -> int:
        return self.position + self.length


class ShortcodeTag(NamedTuple):
    syntax: str
    name: str
    is_closing: bool
    start: int
    end: int


class ShortcodeSyntax(NamedTuple):
    id_: str
    opening_tag_regex_compiled: re.Pattern
    closing_tag_regex_compiled: re.Pattern


SHORTCODE_NAME_REGEX = r'(?P<name> [a-zA-Z0-9_-]+ )'

CODE_BLOCK_REGEX_COMPILED = re.compile(
    pattern=r'''
        (?P<fence> ``` | ~~~ ) [^\n]* \n
        [\s\S]*?
        (?P=fence)
    ''',
    flags=re.VERBOSE,
)
CODE_SPAN_REGEX_COMPILED = re.compile(
    pattern=r'` [^`\n]+ `',
    flags=re.VERBOSE,
)
INLINE_LINK_REGEX_COMPILED = re.compile(
    pattern=r'\[ [^\]]* \] \( [^)]+ \)',
    flags=re.VERBOSE,
)
REFERENCE_LINK_USAGE_REGEX_COMPILED = re.compile(
    pattern=r'\[ [^\]]* \] \[ [^\]]+ \]',
    flags=re.VERBOSE,
)
REFERENCE_DEFINITION_REGEX_COMPILED = re.compile(
    pattern=r'^ [^\S\n]* \[ [^\]]+ \] [:] [^\S\n]* [^\n]+ $',
    flags=re.MULTILINE | re.VERBOSE,
)
MARKDOWN_SPAN_REGEXES_COMPILED = (
    CODE_BLOCK_REGEX_COMPILED,
    CODE_SPAN_REGEX_COMPILED,
    INLINE_LINK_REGEX_COMPILED,
    REFERENCE_LINK_USAGE_REGEX_COMPILED,
    REFERENCE_DEFINITION_REGEX_COMPILED,
)

SHORTCODE_SYNTAXES = (
    ShortcodeSyntax(
        id_='angle',
        opening_tag_regex_compiled=re.compile(
            pattern=rf'\{{\{{< [\s]* {SHORTCODE_NAME_REGEX} (?: [\s/] [^>]* )? [\s]* >\}}\}}',
            flags=re.VERBOSE,
        ),
        closing_tag_regex_compiled=re.compile(
            pattern=rf'\{{\{{< [\s]* / [\s]* {SHORTCODE_NAME_REGEX} [\s]* >\}}\}}',
            flags=re.VERBOSE,
        ),
    ),
    ShortcodeSyntax(
        id_='percent',
        opening_tag_regex_compiled=re.compile(
            pattern=rf'\{{\{{% [\s]* {SHORTCODE_NAME_REGEX} (?: [\s/] [^%]* )? [\s]* %\}}\}}',
            flags=re.VERBOSE,
        ),
        closing_tag_regex_compiled=re.compile(
            pattern=rf'\{{\{{% [\s]* / [\s]* {SHORTCODE_NAME_REGEX} [\s]* %\}}\}}',
            flags=re.VERBOSE,
        ),
    ),
)


class SpanProtector:
    """
    Object masking structured spans with placeholders, and restoring them afterwards.

    ## `protect`

    Returns the masked text together with a fresh `PlaceholderMap`.

    ## `restore`

    Substitutes every placeholder of the map back; a literal lookup, with no structural validation.
    """
    _protect_shortcodes: bool

    def __init__(self, protect_shortcodes: bool = True):
        self._protect_shortcodes = protect_shortcodes

    @property
    def protect_shortcodes(self) -> bool:
        return self._protect_shortcodes

    def protect(self, text: str) -> tuple[str, 'PlaceholderMap']:
        placeholder_map = PlaceholderMap()

        text = placeholder_map.protect_marker_occurrences(text)
        for regex_compiled in MARKDOWN_SPAN_REGEXES_COMPILED:
            text = regex_compiled.sub(lambda match: placeholder_map.protect(match.group()), text)

        if self._protect_shortcodes:
            text = SpanProtector.protect_shortcodes_with(text, placeholder_map)

        return text, placeholder_map

    @staticmethod
    def restore(text: str, placeholder_map: 'PlaceholderMap') -> str:
        return placeholder_map.restore(text)

    @staticmethod
    def protect_shortcodes_with(text: str, placeholder_map: 'PlaceholderMap') -> str:
        shortcodes = find_shortcodes(text)

        # back to front, so that offsets of shortcodes yet to be substituted stay valid
        for shortcode in sorted(shortcodes, key=lambda shortcode: shortcode.position, reverse=True):
            original = text[shortcode.position:shortcode.end]
            token = placeholder_map.protect(original)
            text = text[:shortcode.position] + token + text[shortcode.end:]

        return text


def find_shortcode_tags(text: str) -> list['ShortcodeTag']:
    tags = []
    for syntax in SHORTCODE_SYNTAXES:
        for regex_compiled, is_closing in (
            (syntax.opening_tag_regex_compiled, False),
            (syntax.closing_tag_regex_compiled, True),
        ):
            for match in regex_compiled.finditer(text):
                tags.append(ShortcodeTag(syntax.id_, match.group('name'), is_closing, match.start(), match.end()))

    return sorted(tags, key=lambda tag: tag.start)


def pair_shortcode_tags(text: str, tags: list['ShortcodeTag']) -> list['Shortcode']:
    """
    Pair opening and closing tags in a single pass over the position-sorted tags.

    An opening tag pairs with the next tag of the same syntax and name, provided that tag is a closing tag;
    that is, with the nearest closing tag such that no same-name opening tag begins in between.
    """
    paired_shortcodes = []
    previous_tag_from_key: dict[tuple[str, str], 'ShortcodeTag'] = {}

    for tag in tags:
        key = (tag.syntax, tag.name)
        previous_tag = previous_tag_from_key.get(key)

        if tag.is_closing and previous_tag is not None and not previous_tag.is_closing:
            paired_shortcodes.append(
                Shortcode(
                    kind=PAIRED_SHORTCODE,
                    name=tag.name,
                    content=text[previous_tag.end:tag.start],
                    position=previous_tag.start,
                    length=tag.end - previous_tag.start,
                )
            )

        previous_tag_from_key[key] = tag

    return paired_shortcodes


def find_shortcodes(text: str) -> list['Shortcode']:
    """
    Find the top-level shortcodes of a text, sorted by position.

    Paired shortcodes are found first.
    Shortcodes nested inside (or crossing) an earlier accepted paired shortcode are dropped,
    since they are part of its content.
    Every opening tag not inside an accepted paired shortcode is a self-closing shortcode.
    """
    tags = find_shortcode_tags(text)

    accepted_shortcodes = []
    accepted_end = -1
    for shortcode in sorted(pair_shortcode_tags(text, tags), key=lambda shortcode: shortcode.position):
        if shortcode.position < accepted_end:
            continue

        accepted_shortcodes.append(shortcode)
        accepted_end = shortcode.end

    for tag in tags:
        if tag.is_closing:
            continue
        if is_inside_paired_shortcode(tag.start, accepted_shortcodes):
            continue

        accepted_shortcodes.append(
            Shortcode(
                kind=SELF_CLOSING_SHORTCODE,
                name=tag.name,
                content='',
                position=tag.start,
                length=tag.end - tag.start,
            )
        )

    return sorted(accepted_shortcodes, key=lambda shortcode: shortcode.position)


def is_inside_paired_shortcode(position: int, shortcodes: list['Shortcode']) -> bool:
    return any(
        shortcode.kind == PAIRED_SHORTCODE and shortcode.position <= position < shortcode.end
        for shortcode in shortcodes
    )


def is_valid_shortcode_name(name: str) -> bool:
    return bool(re.fullmatch(pattern=r'[a-zA-Z0-9_-]+', string=name, flags=re.ASCII))


def validate_markdown(text: str) -> list[str]:
    """
    Perform a light verification of Markdown with shortcodes.

    Reports invalid shortcode names, empty paired shortcodes,
    links with empty text or URL outside code blocks, and an unclosed code fence.
    """
    issues = []

    for shortcode in find_shortcodes(text):
        if not is_valid_shortcode_name(shortcode.name):
            issues.append(f'invalid shortcode name: {shortcode.name}')
        if shortcode.kind == PAIRED_SHORTCODE and shortcode.content.strip() == '':
            issues.append(f'empty paired shortcode: {shortcode.name}')

    shortcode_masked_text = SpanProtector.protect_shortcodes_with(text, PlaceholderMap())
    issues.extend(validate_markdown_lines(shortcode_masked_text))

    return issues


def validate_markdown_lines(text: str) -> list[str]:
    issues = []
    fence: Optional[str] = None

    for line_number, line in enumerate(text.split('\n'), start=1):
        line_fence = line[:3]
        if line_fence in ('```', '~~~'):
            if fence is None:
                fence = line_fence
            elif line_fence == fence:
                fence = None
            continue

        if fence is not None:
            continue

        for link_match in re.finditer(pattern=r'\[ (?P<text> [^\]]* ) \] \( (?P<url> [^)]* ) \)',
                                      string=line, flags=re.VERBOSE):
            if link_match.group('text').strip() == '':
                issues.append(f'line {line_number}: empty link text')
            if link_match.group('url').strip() == '':
                issues.append(f'line {line_number}: empty link URL')

    if fence is not None:
        issues.append('unclosed code block')

    return issues
