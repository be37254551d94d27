"""工具模块."""

from testng_runner.tools.java_env import resolve_java_executable
from testng_runner.tools.jacoco import (
    code_coverage_arguments,
    parse_coverage_summary,
    produce_coverage_report,
)
from testng_runner.tools.suite_builder import build_suite_xml, write_suite_file
from testng_runner.tools.test_executor import (
    TestNGExecutor,
    TestRunOutcome,
    build_classpath,
    build_test_command,
)

__all__ = [
    "resolve_java_executable",
    "code_coverage_arguments",
    "parse_coverage_summary",
    "produce_coverage_report",
    "build_suite_xml",
    "write_suite_file",
    "TestNGExecutor",
    "TestRunOutcome",
    "build_classpath",
    "build_test_command",
]
