"""
# prosefix: cli.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Command-line interface.
"""

import argparse
import json
import os
import sys
import warnings
from typing import Optional

import yaml

from prosefix._version import __version__
from prosefix.config import Config, config_to_dict, find_rule_file, load_config_with_imports
from prosefix.constants import COMMAND_LINE_ERROR_EXIT_CODE, GENERIC_ERROR_EXIT_CODE, MARKDOWN_FILE_EXTENSIONS
from prosefix.engine import ReplacementEngine
from prosefix.exceptions import RuleLoadError
from prosefix.reporting import Statistics, generate_diff, render_statistics
from prosefix.spans import validate_markdown

DESCRIPTION = '''
    Unify spelling and terminology in prose according to a rule file,
    leaving Markdown code, links and shortcodes untouched.
'''
FILE_NAME_HELP = '''
    name of file to be processed
'''
RULES_HELP = '''
    rule file to be used
    (default: nearest `prh.yml` or `prh.yaml` from the working directory upward)
'''
RULES_YAML_HELP = '''
    print the resolved rules as YAML and exit
'''
RULES_JSON_HELP = '''
    print the resolved rules as JSON and exit
'''
STDOUT_HELP = '''
    print the replaced content of each file
'''
DIFF_HELP = '''
    print a unified diff of each file against its replaced content
'''
REPLACE_HELP = '''
    overwrite each file with its replaced content
'''
VERIFY_HELP = '''
    check that each file is sound Markdown (shortcodes, links and code fences)
'''
NO_SHORTCODES_HELP = '''
    do not protect shortcodes (rules may then rewrite shortcode content)
'''
VERBOSE_MODE_HELP = '''
    run in verbose mode (prints every rule applied)
'''


def parse_command_line_arguments(arguments: Optional[list[str]] = None) -> argparse.Namespace:
    argument_parser = argparse.ArgumentParser(prog='prosefix', description=DESCRIPTION)
    argument_parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'{argument_parser.prog} version {__version__}',
    )
    argument_parser.add_argument(
        '--rules',
        dest='rules_file_name',
        default=None,
        help=RULES_HELP,
        metavar='prh.yml',
    )
    inspection_group = argument_parser.add_mutually_exclusive_group()
    inspection_group.add_argument(
        '--rules-yaml',
        dest='rules_yaml_mode_enabled',
        action='store_true',
        help=RULES_YAML_HELP,
    )
    inspection_group.add_argument(
        '--rules-json',
        dest='rules_json_mode_enabled',
        action='store_true',
        help=RULES_JSON_HELP,
    )
    output_group = argument_parser.add_mutually_exclusive_group()
    output_group.add_argument(
        '--stdout',
        dest='stdout_mode_enabled',
        action='store_true',
        help=STDOUT_HELP,
    )
    output_group.add_argument(
        '--diff',
        dest='diff_mode_enabled',
        action='store_true',
        help=DIFF_HELP,
    )
    output_group.add_argument(
        '-r', '--replace',
        dest='replace_mode_enabled',
        action='store_true',
        help=REPLACE_HELP,
    )
    output_group.add_argument(
        '--verify',
        dest='verify_mode_enabled',
        action='store_true',
        help=VERIFY_HELP,
    )
    argument_parser.add_argument(
        '--no-shortcodes',
        dest='shortcode_protection_disabled',
        action='store_true',
        help=NO_SHORTCODES_HELP,
    )
    argument_parser.add_argument(
        '-x', '--verbose',
        dest='verbose_mode_enabled',
        action='store_true',
        help=VERBOSE_MODE_HELP,
    )
    argument_parser.add_argument(
        'file_names',
        default=[],
        help=FILE_NAME_HELP,
        metavar='file.md',
        nargs='*',
    )

    return argument_parser.parse_args(arguments)


def is_markdown_file(file_name: str) -> bool:
    return os.path.splitext(file_name)[1].lower() in MARKDOWN_FILE_EXTENSIONS


def load_rules(rules_file_name: Optional[str]) -> 'Config':
    if rules_file_name is None:
        rules_file_name = find_rule_file()
        if rules_file_name is None:
            print('error: rule file (`prh.yml` or `prh.yaml`) not found', file=sys.stderr)
            sys.exit(GENERIC_ERROR_EXIT_CODE)

    try:
        return load_rules_file(rules_file_name)
    except RuleLoadError as rule_load_error:
        print(f'error: {rule_load_error}', file=sys.stderr)
        sys.exit(GENERIC_ERROR_EXIT_CODE)


def load_rules_file(rules_file_name: str) -> 'Config':
    return load_config_with_imports(rules_file_name)


def read_file(file_name: str) -> str:
    try:
        with open(file_name, 'r', encoding='utf-8') as file:
            return file.read()
    except FileNotFoundError:
        print(f'error: file `{file_name}` not found', file=sys.stderr)
        sys.exit(COMMAND_LINE_ERROR_EXIT_CODE)
    except (OSError, UnicodeDecodeError) as error:
        print(f'error: cannot read `{file_name}`: {error}', file=sys.stderr)
        sys.exit(GENERIC_ERROR_EXIT_CODE)


def write_file(file_name: str, content: str):
    try:
        with open(file_name, 'w', encoding='utf-8') as file:
            file.write(content)
    except OSError:
        print(f'error: cannot write to `{file_name}`', file=sys.stderr)
        sys.exit(GENERIC_ERROR_EXIT_CODE)


def verify_file(file_name: str) -> bool:
    if not is_markdown_file(file_name):
        warnings.warn(f'warning: `{file_name}` does not have a Markdown file extension')

    issues = validate_markdown(read_file(file_name))
    for issue in issues:
        print(f'error: `{file_name}`: {issue}', file=sys.stderr)

    if len(issues) == 0:
        print(f'success: `{file_name}` verified')

    return len(issues) == 0


def process_file(file_name: str, engine: 'ReplacementEngine', parsed_arguments: argparse.Namespace,
                 statistics: 'Statistics'):
    result = engine.replace_string(read_file(file_name))
    file_statistics = statistics.add(file_name, result)

    if parsed_arguments.stdout_mode_enabled:
        sys.stdout.write(result.result)
    elif parsed_arguments.diff_mode_enabled:
        sys.stdout.write(generate_diff(result, file_name))
    elif parsed_arguments.replace_mode_enabled:
        if result.changed:
            write_file(file_name, result.result)
            print(f'success: wrote to `{file_name}`')
    elif result.changed:
        print(f'`{file_name}` would change ({file_statistics.rules_applied_count} rule(s) applied):')
        for change in result.changes:
            print(f'- rule {change.rule_index}: {change.rule.expected}')


def main(arguments: Optional[list[str]] = None):
    parsed_arguments = parse_command_line_arguments(arguments)
    file_names = parsed_arguments.file_names

    config = load_rules(parsed_arguments.rules_file_name)

    if parsed_arguments.rules_yaml_mode_enabled:
        sys.stdout.write(yaml.safe_dump(config_to_dict(config), allow_unicode=True, sort_keys=False))
        return
    if parsed_arguments.rules_json_mode_enabled:
        print(json.dumps(config_to_dict(config), ensure_ascii=False, indent=2))
        return

    if len(file_names) == 0:
        print('error: no files specified', file=sys.stderr)
        sys.exit(COMMAND_LINE_ERROR_EXIT_CODE)

    if parsed_arguments.verify_mode_enabled:
        verified = [verify_file(file_name) for file_name in file_names]
        if not all(verified):
            sys.exit(GENERIC_ERROR_EXIT_CODE)
        return

    engine = ReplacementEngine(
        config,
        protect_shortcodes=not parsed_arguments.shortcode_protection_disabled,
        verbose_mode_enabled=parsed_arguments.verbose_mode_enabled,
    )
    statistics = Statistics()
    for file_name in file_names:
        process_file(file_name, engine, parsed_arguments, statistics)

    if not parsed_arguments.stdout_mode_enabled and not parsed_arguments.diff_mode_enabled:
        print(render_statistics(statistics), end='')


if __name__ == '__main__':
    main()
