"""
# prosefix: test_config.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Perform unit testing for `config.py`.
"""

import os
import tempfile
import unittest

from prosefix.config import (
    Config,
    config_to_dict,
    filter_ignored_rules,
    find_rule_file,
    load_config,
    load_config_from_string,
    load_config_with_imports,
    merge_configs,
    resolve_import_path,
)
from prosefix.engine import ReplacementEngine
from prosefix.exceptions import ImportResolutionError, PatternCompileError, RuleLoadError, SpecMismatchError


def write_file(directory, file_name, content):
    path = os.path.join(directory, file_name)
    with open(path, 'w', encoding='utf-8') as file:
        file.write(content)

    return path


class TestConfig(unittest.TestCase):
    def setUp(self):
        self._temporary_directory = tempfile.TemporaryDirectory()
        self.directory = self._temporary_directory.name

    def tearDown(self):
        self._temporary_directory.cleanup()

    def test_load_config_from_string(self):
        config = load_config_from_string(
            '''\
version: 1
rules:
  - expected: API
    specs:
      - from: api
        to: API
  - expected: Kubernetes
    pattern: /[Kk]ubernetes/
    ignorePatternBefore: '[Kk]ubernetes '
  - expected: JavaScript
    patterns:
      - javascript
      - Javascript
  - expected: 1.0
''',
            'prh.yml',
        )

        self.assertEqual(config.version, 1)
        self.assertEqual([rule.expected for rule in config.rules], ['API', 'Kubernetes', 'JavaScript', '1.0'])
        self.assertTrue(all(rule.is_committed for rule in config.rules))
        self.assertEqual(config.rules[1].index, 1)
        self.assertEqual(config.rules[1].source_path, 'prh.yml')
        self.assertEqual(config.rules[2].patterns, ['javascript', 'Javascript'])
        self.assertEqual(config.source_paths, ('prh.yml',))

    def test_load_config_empty(self):
        config = load_config_from_string('', 'prh.yml')

        self.assertEqual(config.version, 1)
        self.assertEqual(config.rules, ())
        self.assertEqual(config.imports, ())

    def test_load_config_invalid(self):
        self.assertRaises(ImportResolutionError, load_config_from_string, 'rules: [unclosed', 'prh.yml')
        self.assertRaises(ImportResolutionError, load_config_from_string, '- a list', 'prh.yml')
        self.assertRaises(ImportResolutionError, load_config_from_string, 'rules: API', 'prh.yml')
        self.assertRaises(ImportResolutionError, load_config_from_string, 'version: one', 'prh.yml')
        self.assertRaises(PatternCompileError, load_config_from_string, 'rules: [{pattern: "("}]', 'prh.yml')

    def test_load_config_spec_mismatch(self):
        with self.assertRaises(SpecMismatchError) as context_manager:
            load_config_from_string(
                '''\
rules:
  - expected: API
  - expected: Cookie
    specs:
      - from: cookie
        to: cookie
''',
                'prh.yml',
            )

        self.assertEqual(context_manager.exception.rule_index, 1)
        self.assertEqual(context_manager.exception.actual, 'Cookie')

    def test_load_config_missing_file(self):
        missing_path = os.path.join(self.directory, 'missing.yml')

        with self.assertRaises(ImportResolutionError) as context_manager:
            load_config(missing_path)

        self.assertEqual(context_manager.exception.source_path, missing_path)

    def test_merge_configs(self):
        base = load_config_from_string(
            'rules: [{expected: Rule1, pattern: a}, {expected: Rule2, pattern: b}]',
            'base.yml',
        )
        override = load_config_from_string('rules: [{expected: Rule1, pattern: c}]', 'override.yml')
        merged = merge_configs(base, override)

        self.assertEqual([rule.expected for rule in merged.rules], ['Rule1', 'Rule2'])
        self.assertEqual(merged.rules[0].pattern, 'c')
        self.assertEqual(merged.rules[0].source_path, 'override.yml')
        self.assertEqual(merged.source_paths, ('base.yml', 'override.yml'))
        self.assertEqual(merge_configs(), Config())

    def test_merge_configs_override_adds_no_duplicates(self):
        first = load_config_from_string('rules: [{expected: Rule1}]', 'first.yml')
        second = load_config_from_string('rules: [{expected: Rule2}, {expected: Rule1}]', 'second.yml')
        merged = merge_configs(first, second)

        self.assertEqual(len(merged.rules), 2)
        self.assertEqual(sorted(rule.expected for rule in merged.rules), ['Rule1', 'Rule2'])
        self.assertEqual([rule.source_path for rule in merged.rules if rule.expected == 'Rule1'], ['second.yml'])
        self.assertEqual([rule.expected for rule in merge_configs(first, second).rules], ['Rule1', 'Rule2'])

    def test_filter_ignored_rules(self):
        config = load_config_from_string(
            'rules: [{expected: JavaScript}, {expected: TypeScript}, {expected: Go}]',
            'prh.yml',
        )
        filtered_config = filter_ignored_rules(config, ('Script',))

        self.assertEqual([rule.expected for rule in filtered_config.rules], ['Go'])
        self.assertIs(filter_ignored_rules(config, ()), config)

    def test_resolve_import_path(self):
        self.assertEqual(resolve_import_path('b.yml', os.path.join('dir', 'a.yml')), os.path.join('dir', 'b.yml'))
        self.assertEqual(resolve_import_path(os.path.join('..', 'b.yml'), os.path.join('dir', 'a.yml')), 'b.yml')

    def test_load_config_with_imports(self):
        write_file(self.directory, 'common.yml', '''\
imports:
  - nested.yml
rules:
  - expected: Rule1
    pattern: common
  - expected: JavaScript
''')
        write_file(self.directory, 'nested.yml', '''\
rules:
  - expected: Nested
''')
        path = write_file(self.directory, 'prh.yml', '''\
imports:
  - path: common.yml
rules:
  - expected: Rule1
    pattern: base
  - expected: API
''')
        config = load_config_with_imports(path)

        self.assertEqual([rule.expected for rule in config.rules], ['Rule1', 'API', 'JavaScript', 'Nested'])
        self.assertEqual(config.rules[0].pattern, 'common')
        self.assertEqual(len(config.source_paths), 3)

        engine = ReplacementEngine(config)
        self.assertEqual(engine.replace_string('base common javascript').result, 'base Rule1 JavaScript')

    def test_load_config_with_imports_disable_imports(self):
        write_file(self.directory, 'common.yml', 'imports: [nested.yml]\nrules: [{expected: Common}]\n')
        write_file(self.directory, 'nested.yml', 'rules: [{expected: Nested}]\n')
        path = write_file(self.directory, 'prh.yml', 'imports: [{path: common.yml, disableImports: true}]\n')

        config = load_config_with_imports(path)
        self.assertEqual([rule.expected for rule in config.rules], ['Common'])

    def test_load_config_with_imports_ignore_rules(self):
        write_file(self.directory, 'common.yml', 'rules: [{expected: JavaScript}, {expected: Go}]\n')
        path = write_file(self.directory, 'prh.yml', '''\
imports:
  - path: common.yml
    ignoreRules: [Java]
''')

        config = load_config_with_imports(path)
        self.assertEqual([rule.expected for rule in config.rules], ['Go'])

    def test_load_config_with_imports_missing(self):
        path = write_file(self.directory, 'prh.yml', 'imports: [missing.yml]\n')

        with self.assertRaises(ImportResolutionError) as context_manager:
            load_config_with_imports(path)

        self.assertIn('import chain', str(context_manager.exception))
        self.assertEqual(context_manager.exception.import_chain[0], path)

    def test_load_config_with_imports_recursive(self):
        write_file(self.directory, 'a.yml', 'imports: [b.yml]\n')
        write_file(self.directory, 'b.yml', 'imports: [a.yml]\n')

        with self.assertRaises(ImportResolutionError) as context_manager:
            load_config_with_imports(os.path.join(self.directory, 'a.yml'))

        self.assertIn('recursive import', str(context_manager.exception))

    def test_load_config_with_imports_self(self):
        path = write_file(self.directory, 'prh.yml', 'imports: [prh.yml]\n')
        self.assertRaises(ImportResolutionError, load_config_with_imports, path)

    def test_imported_error_names_imported_file(self):
        imported_path = write_file(self.directory, 'bad.yml', 'rules: [{expected: x, pattern: "["}]\n')
        path = write_file(self.directory, 'prh.yml', 'imports: [bad.yml]\n')

        with self.assertRaises(RuleLoadError) as context_manager:
            load_config_with_imports(path)

        self.assertEqual(os.path.normpath(context_manager.exception.source_path), os.path.normpath(imported_path))
        self.assertEqual(context_manager.exception.rule_index, 0)

    def test_imported_error_carries_import_chain(self):
        imported_path = write_file(self.directory, 'bad.yml', 'rules: [{expected: x, pattern: "["}]\n')
        path = write_file(self.directory, 'prh.yml', 'imports: [bad.yml]\n')

        with self.assertRaises(ImportResolutionError) as context_manager:
            load_config_with_imports(path)

        import_resolution_error = context_manager.exception
        self.assertIsInstance(import_resolution_error.__cause__, PatternCompileError)
        self.assertEqual(len(import_resolution_error.import_chain), 2)
        self.assertEqual(import_resolution_error.import_chain[0], path)
        self.assertEqual(os.path.normpath(import_resolution_error.import_chain[1]), os.path.normpath(imported_path))
        self.assertEqual(import_resolution_error.rule_index, 0)
        self.assertIn('failed to compile pattern', str(import_resolution_error))
        self.assertIn('import chain', str(import_resolution_error))

    def test_nested_imported_spec_mismatch_carries_import_chain(self):
        write_file(self.directory, 'nested.yml', '''\
rules:
  - expected: API
  - expected: Cookie
    specs:
      - from: cookie
        to: cookie
''')
        write_file(self.directory, 'common.yml', 'imports: [nested.yml]\n')
        path = write_file(self.directory, 'prh.yml', 'imports: [common.yml]\n')

        with self.assertRaises(ImportResolutionError) as context_manager:
            load_config_with_imports(path)

        import_resolution_error = context_manager.exception
        self.assertIsInstance(import_resolution_error.__cause__, SpecMismatchError)
        self.assertEqual(
            [os.path.basename(chained_path) for chained_path in import_resolution_error.import_chain],
            ['prh.yml', 'common.yml', 'nested.yml'],
        )
        self.assertEqual(import_resolution_error.rule_index, 1)
        self.assertIn('spec failed', str(import_resolution_error))

    def test_top_level_errors_are_not_wrapped(self):
        path = write_file(self.directory, 'prh.yml', 'rules: [{expected: x, pattern: "["}]\n')
        self.assertRaises(PatternCompileError, load_config_with_imports, path)

    def test_find_rule_file(self):
        path = write_file(self.directory, 'prh.yaml', '')
        sub_directory = os.path.join(self.directory, 'docs', 'posts')
        os.makedirs(sub_directory)

        self.assertEqual(os.path.realpath(find_rule_file(sub_directory)), os.path.realpath(path))
        self.assertEqual(os.path.realpath(find_rule_file(self.directory)), os.path.realpath(path))

    def test_config_to_dict(self):
        config = load_config_from_string(
            '''\
imports:
  - path: common.yml
    ignoreRules: [Go]
rules:
  - expected: Kubernetes
    pattern: /[Kk]ubernetes/
    ignorePatternBefore: 'Kubernetes '
    specs:
      - from: kubernetes
        to: Kubernetes
  - expected: API
''',
            'prh.yml',
        )

        self.assertEqual(
            config_to_dict(config),
            {
                'version': 1,
                'imports': [{'path': 'common.yml', 'ignoreRules': ['Go']}],
                'rules': [
                    {
                        'expected': 'Kubernetes',
                        'pattern': '/[Kk]ubernetes/',
                        'ignorePatternBefore': 'Kubernetes ',
                        'specs': [{'from': 'kubernetes', 'to': 'Kubernetes'}],
                    },
                    {'expected': 'API'},
                ],
                'sourcePaths': ['prh.yml'],
            },
        )


if __name__ == '__main__':
    unittest.main()
