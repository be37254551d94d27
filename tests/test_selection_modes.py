"""测试选择模式单元测试."""

import pytest

from testng_runner.config import SelectionOptions
from testng_runner.exceptions import SelectionConflictError
from testng_runner.selection.modes import (
    AllTests,
    OnlyChanged,
    OnlyFailed,
    mode_name,
    selection_mode_from_options,
)


class TestSelectionModeFromOptions:
    """选项到模式的转换测试."""

    def test_default_is_all(self):
        assert selection_mode_from_options(SelectionOptions()) == AllTests()

    def test_patterns(self):
        options = SelectionOptions(test_patterns=["FooTest", " ", "Bar"])

        assert selection_mode_from_options(options) == AllTests(patterns=("FooTest", "Bar"))

    def test_only_failed(self):
        options = SelectionOptions(only_failed=True, test_patterns=["Foo"])

        assert selection_mode_from_options(options) == OnlyFailed()

    def test_only_changed_with_commit_range(self):
        options = SelectionOptions(only_changed=True, commit_range=" abc..HEAD ")

        assert selection_mode_from_options(options) == OnlyChanged(commit_range="abc..HEAD")

    def test_only_changed_without_commit_range(self):
        options = SelectionOptions(only_changed=True, commit_range="")

        assert selection_mode_from_options(options) == OnlyChanged()

    def test_conflict(self):
        options = SelectionOptions(only_failed=True, only_changed=True)

        with pytest.raises(SelectionConflictError) as exc_info:
            selection_mode_from_options(options)

        assert exc_info.value.details["directives"] == ["only_failed", "only_changed"]


class TestModeName:
    """模式名称测试."""

    @pytest.mark.parametrize("mode,expected", [
        (AllTests(), "all"),
        (AllTests(patterns=("Foo",)), "matching"),
        (OnlyFailed(), "only-failed"),
        (OnlyChanged("abc"), "only-changes"),
    ])
    def test_mode_name(self, mode, expected):
        assert mode_name(mode) == expected
