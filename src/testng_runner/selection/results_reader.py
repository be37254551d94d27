"""TestNG 结果文件读取."""

import logging
import shutil
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Set

from testng_runner.config import settings
from testng_runner.exceptions import ResultsParseError

logger = logging.getLogger(__name__)

RESULTS_FILE_NAME = "testng-results.xml"
FAILED_STATUS = "FAIL"


@dataclass
class TestRunSummary:
    """TestNG 运行结果摘要."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    ignored: int = 0

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.passed / self.total * 100


def last_results_path(project_name: str, tmp_dir: Optional[Path] = None) -> Path:
    """上一次失败运行的结果文件位置 (位于项目目录之外)."""
    base = Path(tmp_dir) if tmp_dir else settings.results_tmp_dir
    return base / project_name / "test-reports" / "last" / RESULTS_FILE_NAME


def _parse(results_path: Path) -> ET.Element:
    try:
        return ET.parse(results_path).getroot()
    except ET.ParseError as e:
        line, column = e.position
        raise ResultsParseError(
            f"Malformed TestNG results file {results_path}: {e}",
            results_path=str(results_path),
            line=line,
            column=column,
        )


def find_failed_test_classes(results_path: Path) -> Set[str]:
    """找出结果文件中有失败方法的测试类.

    只要类中有一个方法失败，整个类就会被重新运行。

    Args:
        results_path: testng-results.xml 路径

    Returns:
        Set[str]: 失败的全限定类名
    """
    root = _parse(Path(results_path))
    class_names = set()

    for test_element in root.iter("test"):
        for class_element in test_element.iter("class"):
            name = class_element.get("name")
            if not name:
                continue
            for method_element in class_element.iter("test-method"):
                if method_element.get("status") == FAILED_STATUS:
                    class_names.add(name)
                    break

    return class_names


def summarize_results(results_path: Path) -> Optional[TestRunSummary]:
    """读取结果文件根节点上的统计信息，文件不存在时返回 None."""
    results_path = Path(results_path)
    if not results_path.exists():
        return None

    root = _parse(results_path)

    def count(attr: str) -> int:
        try:
            return int(root.get(attr, 0))
        except ValueError:
            return 0

    return TestRunSummary(
        total=count("total"),
        passed=count("passed"),
        failed=count("failed"),
        skipped=count("skipped"),
        ignored=count("ignored"),
    )


def read_run_summary(results_path: Path) -> Optional[TestRunSummary]:
    """读取统计信息用于展示，结果文件损坏时记录警告并返回 None."""
    try:
        return summarize_results(results_path)
    except ResultsParseError as e:
        logger.warning(f"Could not summarize test results: {e.message}")
        return None


def archive_results(
    results_file: Path,
    project_name: str,
    tmp_dir: Optional[Path] = None,
) -> Optional[Path]:
    """保存本次运行的结果文件，供 --only-failed 使用.

    Returns:
        Optional[Path]: 保存位置，结果文件不存在时返回 None
    """
    results_file = Path(results_file)
    if not results_file.exists():
        logger.debug(f"No test results to archive at {results_file}")
        return None

    target = last_results_path(project_name, tmp_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(results_file, target)
    logger.debug(f"Archived test results to {target}")
    return target
