"""
# prosefix: config.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Loading, import resolution and merging of rule documents.

A rule document is YAML of the form
````
version: 1
imports:
  - path: «path»                 (relative to the importing document, unless absolute)
    disableImports: true | false (do not follow the imported document's own imports)
    ignoreRules: [«substring», ...]
rules:
  - expected: «expected»
    [...]
````
See `rules.py` for the rule attributes.
"""

import os
from typing import Any, NamedTuple, Optional

import yaml

from prosefix.constants import DEFAULT_RULES_VERSION, RULE_FILE_NAMES
from prosefix.exceptions import ImportResolutionError, RuleLoadError
from prosefix.rules import Rule


class Import(NamedTuple):
    path: str
    disable_imports: bool = False
    ignore_rules: tuple[str, ...] = ()


class Config(NamedTuple):
    """
    An ordered sequence of committed rules, together with the imports and source paths they came from.
    """
    version: int = DEFAULT_RULES_VERSION
    rules: tuple['Rule', ...] = ()
    imports: tuple['Import', ...] = ()
    source_paths: tuple[str, ...] = ()


def load_config(path: str, import_chain: tuple[str, ...] = ()) -> 'Config':
    """
    Load a single rule document, without following its imports.

    `import_chain` lists the documents through which this one is being imported, if any.
    """
    import_chain = (*import_chain, path)

    try:
        with open(path, 'r', encoding='utf-8') as rules_file:
            content = rules_file.read()
    except OSError as os_error:
        raise build_import_resolution_error(f'cannot read rule file ({os_error.strerror})',
                                            import_chain) from os_error

    return parse_config(content, import_chain)


def load_config_from_string(content: str, source_path: str) -> 'Config':
    return parse_config(content, (source_path,))


def parse_config(content: str, import_chain: tuple[str, ...]) -> 'Config':
    """
    Parse a rule document, commit every rule, and validate every rule against its own specs.
    """
    source_path = import_chain[-1]

    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as yaml_error:
        raise build_import_resolution_error(f'failed to parse YAML: {yaml_error}', import_chain) from yaml_error

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise build_import_resolution_error('rule document must be a mapping', import_chain)

    version = document.get('version', DEFAULT_RULES_VERSION)
    if not isinstance(version, int) or isinstance(version, bool):
        raise build_import_resolution_error(f'invalid version {version!r}', import_chain)

    imports = tuple(
        parse_import(import_declaration, import_chain)
        for import_declaration in ensure_list(document.get('imports'), 'imports', import_chain)
    )
    rules = tuple(
        parse_rule(rule_declaration, import_chain, index)
        for index, rule_declaration in enumerate(ensure_list(document.get('rules'), 'rules', import_chain))
    )

    for rule in rules:
        rule.commit()
    for rule in rules:
        rule.validate_specs()

    return Config(version=version, rules=rules, imports=imports, source_paths=(source_path,))


def build_import_resolution_error(message: str, import_chain: tuple[str, ...],
                                  rule_index: Optional[int] = None) -> 'ImportResolutionError':
    if len(import_chain) > 1:
        chain_string = ' imports '.join(f'`{chained_path}`' for chained_path in import_chain)
        message = f'{message} (import chain: {chain_string})'

    return ImportResolutionError(message, import_chain=import_chain, source_path=import_chain[-1],
                                 rule_index=rule_index)


def ensure_list(value: Any, key: str, import_chain: tuple[str, ...]) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise build_import_resolution_error(f'`{key}` must be a list', import_chain)

    return value


def parse_import(import_declaration: Any, import_chain: tuple[str, ...]) -> 'Import':
    if isinstance(import_declaration, str):
        return Import(path=import_declaration)

    if not isinstance(import_declaration, dict) or not isinstance(import_declaration.get('path'), str):
        raise build_import_resolution_error(f'invalid import declaration {import_declaration!r}', import_chain)

    ignore_rules = ensure_list(import_declaration.get('ignoreRules'), 'ignoreRules', import_chain)

    return Import(
        path=import_declaration['path'],
        disable_imports=bool(import_declaration.get('disableImports', False)),
        ignore_rules=tuple(stringify(ignore_rule) for ignore_rule in ignore_rules),
    )


def parse_rule(rule_declaration: Any, import_chain: tuple[str, ...], index: int) -> 'Rule':
    if not isinstance(rule_declaration, dict):
        raise build_import_resolution_error(f'invalid rule declaration {rule_declaration!r}', import_chain, index)

    rule = Rule(stringify(rule_declaration.get('expected')), import_chain[-1], index)

    pattern = rule_declaration.get('pattern')
    if pattern is not None:
        rule.pattern = stringify(pattern)

    patterns = rule_declaration.get('patterns')
    if isinstance(patterns, str):
        patterns = [patterns]
    rule.patterns = [stringify(alternative) for alternative in ensure_list(patterns, 'patterns', import_chain)]

    ignore_pattern_before = rule_declaration.get('ignorePatternBefore')
    if ignore_pattern_before is not None:
        rule.ignore_pattern_before = stringify(ignore_pattern_before)

    regexp_must_empty = rule_declaration.get('regexpMustEmpty')
    if regexp_must_empty is not None:
        rule.regexp_must_empty = stringify(regexp_must_empty)

    for spec_declaration in ensure_list(rule_declaration.get('specs'), 'specs', import_chain):
        if not isinstance(spec_declaration, dict):
            raise build_import_resolution_error(f'invalid spec declaration {spec_declaration!r}', import_chain, index)
        rule.add_spec(stringify(spec_declaration.get('from')), stringify(spec_declaration.get('to')))

    return rule


def stringify(value: Any) -> str:
    """
    Coerce a YAML scalar to a string (unquoted scalars such as `1.0` are loaded as numbers).
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'

    return str(value)


def merge_configs(*configs: 'Config') -> 'Config':
    """
    Merge configs, later ones taking precedence.

    Rules are identified by `expected`.
    The first occurrence of an `expected` value fixes the rule's position,
    and a later rule with the same `expected` value replaces it in place.
    """
    if len(configs) == 0:
        return Config()

    rule_from_expected: dict[str, 'Rule'] = {}
    for config in configs:
        for rule in config.rules:
            rule_from_expected[rule.expected] = rule

    return Config(
        version=configs[0].version,
        rules=tuple(rule_from_expected.values()),
        imports=configs[0].imports,
        source_paths=tuple(
            source_path
            for config in configs
            for source_path in config.source_paths
        ),
    )


def filter_ignored_rules(config: 'Config', ignore_rules: tuple[str, ...]) -> 'Config':
    if len(ignore_rules) == 0:
        return config

    rules = tuple(
        rule
        for rule in config.rules
        if not any(ignore_rule in rule.expected for ignore_rule in ignore_rules)
    )

    return config._replace(rules=rules)


def resolve_import_path(import_path: str, importing_path: str) -> str:
    if os.path.isabs(import_path):
        return os.path.normpath(import_path)

    return os.path.normpath(os.path.join(os.path.dirname(importing_path), import_path))


def load_config_with_imports(path: str, import_chain: tuple[str, ...] = ()) -> 'Config':
    """
    Load a rule document and resolve its import graph into one effective config.

    The base document comes first, then each import in declaration order.
    Errors in an imported document are raised as an `ImportResolutionError`
    naming that document and the chain of imports leading to it.
    """
    config = load_config(path, import_chain)
    import_chain = (*import_chain, path)

    configs = [config]
    for import_ in config.imports:
        import_path = resolve_import_path(import_.path, path)

        if any(is_same_file(opened_path, import_path) for opened_path in import_chain):
            raise ImportResolutionError(
                'recursive import: ' + ' imports '.join(f'`{chained_path}`'
                                                        for chained_path in (*import_chain, import_path)),
                import_chain=(*import_chain, import_path),
                source_path=path,
            )

        try:
            if import_.disable_imports:
                imported_config = load_config(import_path, import_chain)
            else:
                imported_config = load_config_with_imports(import_path, import_chain)
        except ImportResolutionError:
            raise
        except RuleLoadError as rule_load_error:
            raise build_import_resolution_error(rule_load_error.message, (*import_chain, import_path),
                                                rule_load_error.rule_index) from rule_load_error

        configs.append(filter_ignored_rules(imported_config, import_.ignore_rules))

    if len(configs) == 1:
        return config

    return merge_configs(*configs)


def is_same_file(path: str, other_path: str) -> bool:
    try:
        return os.path.samefile(path, other_path)
    except OSError:
        return os.path.normpath(path) == os.path.normpath(other_path)


def find_rule_file(start_directory: Optional[str] = None) -> Optional[str]:
    """
    Find `prh.yml` (or `prh.yaml`) in the start directory or its nearest ancestor having one.
    """
    if start_directory is None:
        start_directory = os.getcwd()

    directory = os.path.abspath(start_directory)
    while True:
        for rule_file_name in RULE_FILE_NAMES:
            path = os.path.join(directory, rule_file_name)
            if os.path.isfile(path):
                return path

        parent_directory = os.path.dirname(directory)
        if parent_directory == directory:
            return None

        directory = parent_directory


def config_to_dict(config: 'Config') -> dict[str, Any]:
    """
    Convert a config to plain data, using the key names of the rule document format.
    """
    return {
        'version': config.version,
        'imports': [import_to_dict(import_) for import_ in config.imports],
        'rules': [rule_to_dict(rule) for rule in config.rules],
        'sourcePaths': list(config.source_paths),
    }


def import_to_dict(import_: 'Import') -> dict[str, Any]:
    import_dict: dict[str, Any] = {'path': import_.path}
    if import_.disable_imports:
        import_dict['disableImports'] = True
    if len(import_.ignore_rules) > 0:
        import_dict['ignoreRules'] = list(import_.ignore_rules)

    return import_dict


def rule_to_dict(rule: 'Rule') -> dict[str, Any]:
    rule_dict: dict[str, Any] = {'expected': rule.expected}
    if rule.pattern:
        rule_dict['pattern'] = rule.pattern
    if len(rule.patterns) > 0:
        rule_dict['patterns'] = rule.patterns
    if rule.ignore_pattern_before:
        rule_dict['ignorePatternBefore'] = rule.ignore_pattern_before
    if rule.regexp_must_empty:
        rule_dict['regexpMustEmpty'] = rule.regexp_must_empty
    if len(rule.specs) > 0:
        rule_dict['specs'] = [{'from': spec.from_, 'to': spec.to} for spec in rule.specs]

    return rule_dict
