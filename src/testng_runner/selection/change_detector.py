"""变更检测器 - 从版本控制差异中找出需要运行的测试类."""

import logging
import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

from testng_runner.config import settings

logger = logging.getLogger(__name__)

TEST_FILE_PATTERN = re.compile(r"^(?P<module>(?:.*/)?)src/test/java/(?P<class_path>.+Test)\.java$")
MAIN_FILE_PATTERN = re.compile(r"^(?P<module>(?:.*/)?)src/main/java/(?P<class_path>.+)\.java$")


@dataclass
class ChangeSetResult:
    """一次差异命令的结果."""
    source: str
    paths: List[str] = field(default_factory=list)
    ok: bool = True
    timed_out: bool = False
    error: str = ""

    @classmethod
    def from_output(cls, source: str, output: str) -> "ChangeSetResult":
        return cls(source=source, paths=parse_changed_paths(output))

    @classmethod
    def failure(cls, source: str, error: str, timed_out: bool = False) -> "ChangeSetResult":
        return cls(source=source, ok=False, timed_out=timed_out, error=error)


def parse_changed_paths(output: str) -> List[str]:
    """将按行分隔的差异输出转换为路径列表."""
    return [line.strip() for line in output.splitlines() if line.strip()]


class ChangeSetProvider(ABC):
    """变更集提供者."""

    @property
    @abstractmethod
    def base_dir(self) -> Path:
        """变更路径的解析基准目录."""

    @abstractmethod
    def committed_changes(self, commit_range: Optional[str] = None) -> ChangeSetResult:
        """已提交的变更."""

    @abstractmethod
    def uncommitted_changes(self) -> ChangeSetResult:
        """工作区中尚未提交的变更."""


class GitChangeSetProvider(ChangeSetProvider):
    """基于 git / gh 命令行的变更集提供者."""

    def __init__(
        self,
        repo_path: Path,
        pr_diff_timeout: Optional[float] = None,
        upstream_ref: Optional[str] = None,
    ):
        self._repo_path = Path(repo_path)
        self._pr_diff_timeout = pr_diff_timeout or settings.pr_diff_timeout
        self._upstream_ref = upstream_ref or settings.upstream_ref
        self._base_dir: Optional[Path] = None

    @property
    def base_dir(self) -> Path:
        if self._base_dir is None:
            result = self._run(["git", "rev-parse", "--show-toplevel"])
            if result.ok and result.paths:
                self._base_dir = Path(result.paths[0])
            else:
                self._base_dir = self._repo_path
        return self._base_dir

    def committed_changes(self, commit_range: Optional[str] = None) -> ChangeSetResult:
        if commit_range:
            # 用户指定了提交或提交范围
            result = self._run(
                ["git", "diff", "--name-only", "--pretty=oneline"] + commit_range.split()
            )
            logger.debug(f"git diff {commit_range} returned these changes:\n" + "\n".join(result.paths))
            return result

        # gh pr diff 在非 PR 分支或未安装 gh 时会失败
        result = self._run(["gh", "pr", "diff", "--name-only"], timeout=self._pr_diff_timeout)
        if result.ok:
            logger.debug("gh pr diff returned these changes:\n" + "\n".join(result.paths))
            return result

        logger.debug(f"gh pr diff command not successful ({result.error}). Falling back to git diff")
        result = self._run([
            "git", "diff", "--name-only", "--pretty=oneline", "--no-merges",
            f"{self._upstream_ref}..HEAD",
        ])
        logger.debug(f"git diff {self._upstream_ref}..HEAD returned these changes:\n" + "\n".join(result.paths))
        return result

    def uncommitted_changes(self) -> ChangeSetResult:
        result = self._run(["git", "diff", "-u", "--name-only", "HEAD"])
        logger.debug("uncommitted changes:\n" + "\n".join(result.paths))
        return result

    def _run(self, cmd: List[str], timeout: Optional[float] = None) -> ChangeSetResult:
        """执行差异命令，失败时返回失败结果而不是抛出异常."""
        source = " ".join(cmd)
        try:
            completed = subprocess.run(
                cmd,
                cwd=self._repo_path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return ChangeSetResult.failure(source, f"timed out after {timeout} seconds", timed_out=True)
        except FileNotFoundError:
            return ChangeSetResult.failure(source, f"command not found: {cmd[0]}")

        if completed.returncode != 0:
            return ChangeSetResult.failure(
                source, (completed.stderr or "").strip() or f"exit code {completed.returncode}"
            )
        return ChangeSetResult.from_output(source, completed.stdout or "")


class StaticChangeSetProvider(ChangeSetProvider):
    """固定内容的变更集提供者."""

    def __init__(
        self,
        committed: Iterable[str] = (),
        uncommitted: Iterable[str] = (),
        base_dir: Path = Path("."),
    ):
        self._committed = list(committed)
        self._uncommitted = list(uncommitted)
        self._base_dir = Path(base_dir)
        self.requested_ranges: List[Optional[str]] = []

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def committed_changes(self, commit_range: Optional[str] = None) -> ChangeSetResult:
        self.requested_ranges.append(commit_range)
        return ChangeSetResult(source="static:committed", paths=list(self._committed))

    def uncommitted_changes(self) -> ChangeSetResult:
        return ChangeSetResult(source="static:uncommitted", paths=list(self._uncommitted))


def collect_changed_test_classes(
    changes: Iterable[str],
    base_dir: Path,
    test_classes: Set[str],
) -> Set[str]:
    """将变更路径归类为测试类并加入 test_classes.

    - ``src/test/java/<FQN>Test.java``: 文件仍存在时加入 ``<FQN>Test``
    - ``src/main/java/<FQN>.java``: 对应的 ``src/test/java/<FQN>Test.java`` 存在时加入 ``<FQN>Test``

    Args:
        changes: 仓库相对路径
        base_dir: 路径解析基准目录
        test_classes: 累积的测试类集合 (原地修改)

    Returns:
        Set[str]: test_classes
    """
    base_dir = Path(base_dir)

    for change in changes:
        change = change.strip()
        if not change:
            continue

        test_match = TEST_FILE_PATTERN.match(change)
        if test_match:
            # 被删除的测试文件不应被选中
            if (base_dir / change).exists():
                test_classes.add(test_match.group("class_path").replace("/", "."))
            continue

        main_match = MAIN_FILE_PATTERN.match(change)
        if main_match:
            class_path = main_match.group("class_path")
            test_class = class_path.replace("/", ".") + "Test"
            if test_class in test_classes:
                continue
            test_file = base_dir / f"{main_match.group('module')}src/test/java/{class_path}Test.java"
            if test_file.exists():
                test_classes.add(test_class)

    return test_classes
