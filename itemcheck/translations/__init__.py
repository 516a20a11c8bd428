"""
Translation dictionary and coverage.

Usage:
    from itemcheck.translations import load_dictionary, compare, missing_runs

    report = compare(items, dictionary)
    print(f"{report.coverage}% translated, {report.missing_count} missing")
"""

from .dictionary import load_dictionary, load_dictionary_file, parse_dictionary
from .coverage import (
    CoverageReport,
    ItemStatus,
    MissingRun,
    compare,
    coverage_percent,
    missing_runs,
)
from .templates import (
    annotated_template,
    default_template_filename,
    missing_template,
    render_annotated_template,
    render_json_template,
)
from .views import FILTERS, SORTS, ItemRow, item_rows

__all__ = [
    # Dictionary
    'load_dictionary',
    'load_dictionary_file',
    'parse_dictionary',
    # Coverage
    'CoverageReport',
    'ItemStatus',
    'MissingRun',
    'compare',
    'coverage_percent',
    'missing_runs',
    # Templates
    'annotated_template',
    'default_template_filename',
    'missing_template',
    'render_annotated_template',
    'render_json_template',
    # Views
    'FILTERS',
    'SORTS',
    'ItemRow',
    'item_rows',
]
