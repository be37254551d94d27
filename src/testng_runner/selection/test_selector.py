"""测试选择器."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from testng_runner.config import SelectionOptions
from testng_runner.selection.catalog import is_test_class_name, simple_class_name
from testng_runner.selection.change_detector import (
    ChangeSetProvider,
    GitChangeSetProvider,
    collect_changed_test_classes,
)
from testng_runner.selection.modes import (
    AllTests,
    OnlyChanged,
    OnlyFailed,
    SelectionMode,
    mode_name,
    selection_mode_from_options,
)
from testng_runner.selection.results_reader import (
    find_failed_test_classes,
    last_results_path,
)

logger = logging.getLogger(__name__)


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class GroupFilter:
    """TestNG 分组过滤，只影响选中类内部运行哪些方法."""
    include_groups: Tuple[str, ...] = ()
    exclude_groups: Tuple[str, ...] = ()

    @classmethod
    def of(
        cls,
        include_groups: Optional[Iterable[str]] = None,
        exclude_groups: Optional[Iterable[str]] = None,
    ) -> "GroupFilter":
        return cls(
            include_groups=_unique(include_groups or ()),
            exclude_groups=_unique(exclude_groups or ()),
        )

    @property
    def is_empty(self) -> bool:
        return not self.include_groups and not self.exclude_groups


@dataclass
class SelectionResult:
    """选择结果."""
    class_names: Tuple[str, ...] = ()
    group_filter: GroupFilter = field(default_factory=GroupFilter)
    mode: SelectionMode = field(default_factory=AllTests)
    notices: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.class_names = tuple(sorted(set(self.class_names)))

    @property
    def total_count(self) -> int:
        return len(self.class_names)

    @property
    def is_empty(self) -> bool:
        return not self.class_names

    def equivalent_test_flags(self) -> str:
        """等价的 --test 参数，用于提示用户."""
        return " ".join(f"--test={name}" for name in self.class_names)


def match_patterns(candidates: Iterable[str], patterns: Sequence[str]) -> Set[str]:
    """按名称模式过滤候选测试类.

    对每个模式，先找简单类名或全限定名完全相等的候选；只有该模式
    没有任何精确匹配时，才退化为全限定名包含该模式的模糊匹配。
    某个模式有精确匹配并不妨碍其他模式按子串匹配。

    Args:
        candidates: 全限定类名
        patterns: 名称模式

    Returns:
        Set[str]: 至少被一个模式选中的类名
    """
    candidates = list(candidates)
    selected: Set[str] = set()

    for pattern in patterns:
        exact = {
            name for name in candidates
            if pattern == name or pattern == simple_class_name(name)
        }
        if exact:
            selected |= exact
        else:
            selected |= {name for name in candidates if pattern in name}

    return selected


class TestSelector:
    """测试选择器 - 根据选择模式决定生成的套件中包含哪些测试类."""

    def __init__(
        self,
        project_dir: Path,
        project_name: str,
        change_provider: Optional[ChangeSetProvider] = None,
        results_path: Optional[Path] = None,
    ):
        self._project_dir = Path(project_dir)
        self._project_name = project_name
        self._change_provider = change_provider
        self._results_path = results_path

    @property
    def change_provider(self) -> ChangeSetProvider:
        if self._change_provider is None:
            self._change_provider = GitChangeSetProvider(self._project_dir)
        return self._change_provider

    @property
    def results_path(self) -> Path:
        if self._results_path is None:
            return last_results_path(self._project_name)
        return self._results_path

    def select_with_options(
        self,
        catalog: Iterable[str],
        options: SelectionOptions,
    ) -> SelectionResult:
        mode = selection_mode_from_options(options)
        group_filter = GroupFilter.of(options.include_groups, options.exclude_groups)
        return self.select(catalog, mode, group_filter)

    def select(
        self,
        catalog: Iterable[str],
        mode: SelectionMode,
        group_filter: Optional[GroupFilter] = None,
    ) -> SelectionResult:
        group_filter = group_filter or GroupFilter()

        if isinstance(mode, OnlyFailed):
            return self._select_failed(group_filter)
        if isinstance(mode, OnlyChanged):
            return self._select_changed(mode, group_filter)
        if isinstance(mode, AllTests):
            return self._select_all(catalog, mode, group_filter)
        raise TypeError(f"Unknown selection mode: {mode!r}")

    def _select_all(
        self,
        catalog: Iterable[str],
        mode: AllTests,
        group_filter: GroupFilter,
    ) -> SelectionResult:
        candidates = {name for name in catalog if is_test_class_name(name)}

        if mode.patterns:
            selected = match_patterns(candidates, mode.patterns)
            notice = (
                f"Running [{len(selected)}] tests requested by the test switch "
                f"matching [{','.join(mode.patterns)}]"
            )
        else:
            selected = candidates
            notice = f"Running all tests. Found [{len(selected)}] tests."

        logger.info(notice)
        return SelectionResult(
            class_names=tuple(selected),
            group_filter=group_filter,
            mode=mode,
            notices=[notice],
        )

    def _select_failed(self, group_filter: GroupFilter) -> SelectionResult:
        notices = ["Retry previously failed tests."]
        results_path = self.results_path

        if results_path.exists():
            class_names = find_failed_test_classes(results_path)
            result = SelectionResult(
                class_names=tuple(class_names),
                group_filter=group_filter,
                mode=OnlyFailed(),
            )
            notices.append(
                f"Found [{result.total_count}] failed tests to run. Equivalent to running:\n"
                f"{result.equivalent_test_flags()}"
            )
        else:
            result = SelectionResult(group_filter=group_filter, mode=OnlyFailed())
            notices.append(
                f"No test results found from a prior test run. File not found [{results_path}]."
            )

        for notice in notices:
            logger.info(notice)
        result.notices = notices
        return result

    def _select_changed(self, mode: OnlyChanged, group_filter: GroupFilter) -> SelectionResult:
        notices = ["Only running tests for changed files (misses changes in dependencies)."]
        provider = self.change_provider
        test_classes: Set[str] = set()

        for change_set in (
            provider.committed_changes(mode.commit_range),
            provider.uncommitted_changes(),
        ):
            if not change_set.ok:
                logger.warning(f"Could not read changes from [{change_set.source}]: {change_set.error}")
            collect_changed_test_classes(change_set.paths, provider.base_dir, test_classes)

        result = SelectionResult(
            class_names=tuple(test_classes),
            group_filter=group_filter,
            mode=mode,
        )
        notices.append(
            f"Found [{result.total_count}] tests to run from changed files. Equivalent to running:\n"
            f"testng-runner test {result.equivalent_test_flags()}"
        )
        for notice in notices:
            logger.info(notice)
        result.notices = notices
        logger.debug(f"Selection mode [{mode_name(mode)}] selected {list(result.class_names)}")
        return result
