"""JaCoCo 代码覆盖率模块."""

import logging
import subprocess
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from testng_runner.config import settings
from testng_runner.exceptions import CoverageError

logger = logging.getLogger(__name__)

COVERAGE_REPORT_DIRECTORY = Path("build/coverage-reports")


@dataclass
class CoverageSummary:
    """覆盖率摘要."""
    line_covered: int = 0
    line_missed: int = 0
    branch_covered: int = 0
    branch_missed: int = 0

    @property
    def line_coverage(self) -> float:
        total = self.line_covered + self.line_missed
        return self.line_covered / total * 100 if total else 0.0

    @property
    def branch_coverage(self) -> float:
        total = self.branch_covered + self.branch_missed
        return self.branch_covered / total * 100 if total else 0.0


def coverage_exec_file(project_dir: Path) -> Path:
    """Java agent 写入的执行数据文件."""
    return Path(project_dir).absolute() / "build" / "jacoco.exec"


def code_coverage_arguments(
    project_dir: Path,
    enabled: bool,
    agent_jar: Optional[Path] = None,
) -> List[str]:
    """测试进程的 JaCoCo agent 参数，未启用覆盖率时为空."""
    if not enabled:
        return []

    agent_jar = agent_jar or settings.jacoco_agent_jar
    if agent_jar is None or not Path(agent_jar).is_file():
        raise CoverageError(
            "Code coverage is enabled but the JaCoCo agent jar is not configured. "
            "Set TESTNG_RUNNER_JACOCO_AGENT_JAR to the path of jacocoagent.jar"
        )

    return [f"-javaagent:{Path(agent_jar).absolute()}=destfile={coverage_exec_file(project_dir)}"]


def produce_coverage_report(
    project_dir: Path,
    java_path: Path,
    project_name: str,
    main_jars: Iterable[Path],
    cli_jar: Optional[Path] = None,
) -> Path:
    """根据执行数据生成 HTML/XML 覆盖率报告.

    报告只分析项目发布的主 jar，源码取自 src/main/java。

    Returns:
        Path: 报告目录
    """
    project_dir = Path(project_dir).absolute()
    exec_file = coverage_exec_file(project_dir)
    report_directory = project_dir / COVERAGE_REPORT_DIRECTORY

    if not exec_file.exists():
        raise CoverageError(f"{exec_file} was not found", exec_file=str(exec_file))

    cli_jar = cli_jar or settings.jacoco_cli_jar
    if cli_jar is None:
        raise CoverageError(
            "The JaCoCo CLI jar is not configured. Set TESTNG_RUNNER_JACOCO_CLI_JAR to the path of jacococli.jar",
            exec_file=str(exec_file),
        )

    cmd = [str(java_path), "-jar", str(cli_jar), "report", str(exec_file)]
    for jar in main_jars:
        cmd += ["--classfiles", str((project_dir / jar).absolute())]
    cmd += [
        "--sourcefiles", str(project_dir / "src" / "main" / "java"),
        "--html", str(report_directory),
        "--xml", str(report_directory / "jacoco.xml"),
        "--name", f"JaCoCo Coverage Report - {project_name}",
    ]
    logger.debug(f"Running command [{' '.join(cmd)}]")

    try:
        result = subprocess.run(
            cmd,
            cwd=project_dir,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        raise CoverageError(
            f"Command not found: {java_path}",
            exec_file=str(exec_file),
        )

    if result.returncode != 0:
        raise CoverageError(
            f"JaCoCo report generation failed: {result.stderr or result.stdout}",
            exec_file=str(exec_file),
            report_directory=str(report_directory),
        )

    return report_directory


def parse_coverage_summary(xml_report: Path) -> Optional[CoverageSummary]:
    """解析 JaCoCo XML 报告根节点的计数器."""
    xml_report = Path(xml_report)
    if not xml_report.exists():
        return None

    try:
        root = ET.parse(xml_report).getroot()
    except ET.ParseError as e:
        raise CoverageError(f"Malformed JaCoCo report {xml_report}: {e}")

    summary = CoverageSummary()
    for counter in root.findall("counter"):
        counter_type = counter.get("type")
        missed = int(counter.get("missed", 0))
        covered = int(counter.get("covered", 0))

        if counter_type == "LINE":
            summary.line_missed = missed
            summary.line_covered = covered
        elif counter_type == "BRANCH":
            summary.branch_missed = missed
            summary.branch_covered = covered

    return summary
