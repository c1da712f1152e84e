"""
# prosefix: constants.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Constants.
"""

GENERIC_ERROR_EXIT_CODE = 1
COMMAND_LINE_ERROR_EXIT_CODE = 2
VERBOSE_MODE_DIVIDER_SYMBOL_COUNT = 48

DEFAULT_RULES_VERSION = 1
RULE_FILE_NAMES = ('prh.yml', 'prh.yaml')
MARKDOWN_FILE_EXTENSIONS = ('.md', '.markdown')

PAIRED_SHORTCODE = 'paired'
SELF_CLOSING_SHORTCODE = 'self-closing'
