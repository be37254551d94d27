"""测试选择模式."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from testng_runner.config import SelectionOptions
from testng_runner.exceptions import SelectionConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllTests:
    """运行目录中的全部测试类，可按名称模式过滤."""
    patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OnlyFailed:
    """只重新运行上一次失败的测试类."""


@dataclass(frozen=True)
class OnlyChanged:
    """只运行变更文件对应的测试类."""
    commit_range: Optional[str] = None


SelectionMode = Union[AllTests, OnlyFailed, OnlyChanged]


def mode_name(mode: SelectionMode) -> str:
    if isinstance(mode, OnlyFailed):
        return "only-failed"
    if isinstance(mode, OnlyChanged):
        return "only-changes"
    if mode.patterns:
        return "matching"
    return "all"


def selection_mode_from_options(options: SelectionOptions) -> SelectionMode:
    """根据选项确定唯一的选择模式.

    Raises:
        SelectionConflictError: 同时指定了 only_failed 与 only_changed
    """
    if options.only_failed and options.only_changed:
        raise SelectionConflictError(
            "--only-failed and --only-changes cannot be used together",
            directives=["only_failed", "only_changed"],
        )

    if options.only_failed or options.only_changed:
        if options.test_patterns:
            logger.warning(
                f"Ignoring test patterns {options.test_patterns}: "
                "they only apply when running all tests"
            )
        if options.only_failed:
            if options.commit_range:
                logger.warning("Ignoring commit range: it only applies to --only-changes")
            return OnlyFailed()
        return OnlyChanged(commit_range=options.commit_range)

    if options.commit_range:
        logger.warning("Ignoring commit range: it only applies to --only-changes")
    return AllTests(patterns=tuple(options.test_patterns))
