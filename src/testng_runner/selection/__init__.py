"""测试选择模块."""

from testng_runner.selection.catalog import (
    build_class_catalog,
    is_test_class_name,
)
from testng_runner.selection.change_detector import (
    ChangeSetProvider,
    ChangeSetResult,
    GitChangeSetProvider,
    StaticChangeSetProvider,
    collect_changed_test_classes,
)
from testng_runner.selection.modes import (
    AllTests,
    OnlyChanged,
    OnlyFailed,
    SelectionMode,
    selection_mode_from_options,
)
from testng_runner.selection.results_reader import (
    TestRunSummary,
    archive_results,
    find_failed_test_classes,
    last_results_path,
    read_run_summary,
    summarize_results,
)
from testng_runner.selection.test_selector import (
    GroupFilter,
    SelectionResult,
    TestSelector,
    match_patterns,
)

__all__ = [
    "build_class_catalog",
    "is_test_class_name",
    "ChangeSetProvider",
    "ChangeSetResult",
    "GitChangeSetProvider",
    "StaticChangeSetProvider",
    "collect_changed_test_classes",
    "AllTests",
    "OnlyChanged",
    "OnlyFailed",
    "SelectionMode",
    "selection_mode_from_options",
    "TestRunSummary",
    "archive_results",
    "find_failed_test_classes",
    "last_results_path",
    "read_run_summary",
    "summarize_results",
    "GroupFilter",
    "SelectionResult",
    "TestSelector",
    "match_patterns",
]
