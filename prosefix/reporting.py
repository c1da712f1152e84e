"""
# prosefix: reporting.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Diffs and statistics for replacement results.
"""

import difflib
from typing import NamedTuple

from prosefix.engine import ReplaceResult


class FileStatistics(NamedTuple):
    file_name: str
    rules_applied_count: int
    modified: bool


class Statistics:
    """
    Running totals over the files processed in one invocation.
    """
    _file_statistics_list: list['FileStatistics']

    def __init__(self):
        self._file_statistics_list = []

    @property
    def file_statistics_list(self) -> list['FileStatistics']:
        return list(self._file_statistics_list)

    @property
    def files_processed(self) -> int:
        return len(self._file_statistics_list)

    @property
    def files_modified(self) -> int:
        return sum(1 for file_statistics in self._file_statistics_list if file_statistics.modified)

    @property
    def total_rules_applied(self) -> int:
        return sum(file_statistics.rules_applied_count for file_statistics in self._file_statistics_list)

    def add(self, file_name: str, result: 'ReplaceResult') -> 'FileStatistics':
        file_statistics = FileStatistics(file_name, len(result.changes), result.changed)
        self._file_statistics_list.append(file_statistics)

        return file_statistics


def render_statistics(statistics: 'Statistics') -> str:
    lines = [
        'Summary:',
        f'  files processed: {statistics.files_processed}',
        f'  files modified: {statistics.files_modified}',
        f'  total rules applied: {statistics.total_rules_applied}',
    ]

    modified_file_statistics_list = [
        file_statistics
        for file_statistics in statistics.file_statistics_list
        if file_statistics.modified
    ]
    if len(modified_file_statistics_list) > 0:
        lines.append('Per file:')
        for file_statistics in modified_file_statistics_list:
            lines.append(f'  {file_statistics.file_name}: {file_statistics.rules_applied_count} rule(s) applied')

    return '\n'.join(lines) + '\n'


def generate_diff(result: 'ReplaceResult', file_name: str) -> str:
    """
    Render a result as a unified diff, or the empty string if nothing changed.
    """
    if not result.changed or result.original == result.result:
        return ''

    return ''.join(
        difflib.unified_diff(
            result.original.splitlines(keepends=True),
            result.result.splitlines(keepends=True),
            fromfile=file_name,
            tofile=file_name,
        )
    )
