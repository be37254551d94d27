"""testng-runner 专用异常类.

提供细粒度的异常处理，便于错误诊断和恢复。
"""

from typing import List, Optional


class TestNGRunnerError(Exception):
    """testng-runner 基础异常类."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TestNGRunnerError):
    """配置错误."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_file: Optional[str] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_file:
            details["config_file"] = config_file
        super().__init__(message, details)


class SelectionConflictError(ConfigurationError):
    """选择模式冲突 (例如同时指定 only-failed 与 only-changes)."""

    def __init__(self, message: str, directives: Optional[List[str]] = None):
        super().__init__(message)
        if directives:
            self.details["directives"] = list(directives)


class ClassCatalogError(TestNGRunnerError):
    """扫描测试 jar 失败."""

    def __init__(self, message: str, jar_path: Optional[str] = None):
        details = {"jar_path": jar_path} if jar_path else {}
        super().__init__(message, details)


class ResultsParseError(TestNGRunnerError):
    """TestNG 结果文件解析错误."""

    def __init__(
        self,
        message: str,
        results_path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        details = {"results_path": results_path} if results_path else {}
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column
        super().__init__(message, details)


class JavaEnvironmentError(TestNGRunnerError):
    """Java 环境错误."""

    def __init__(
        self,
        message: str,
        java_version: Optional[str] = None,
        java_path: Optional[str] = None,
    ):
        details = {}
        if java_version:
            details["java_version"] = java_version
        if java_path:
            details["java_path"] = java_path
        super().__init__(message, details)


class SuiteGenerationError(TestNGRunnerError):
    """测试套件 XML 生成错误."""

    def __init__(self, message: str, suite_path: Optional[str] = None):
        details = {"suite_path": suite_path} if suite_path else {}
        super().__init__(message, details)


class TestExecutionError(TestNGRunnerError):
    """测试执行错误."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        exit_code: Optional[int] = None,
        results_path: Optional[str] = None,
    ):
        details = {}
        if command:
            details["command"] = " ".join(command)
        if exit_code is not None:
            details["exit_code"] = exit_code
        if results_path:
            details["results_path"] = results_path
        super().__init__(message, details)


class CoverageError(TestNGRunnerError):
    """覆盖率报告错误."""

    def __init__(
        self,
        message: str,
        exec_file: Optional[str] = None,
        report_directory: Optional[str] = None,
    ):
        details = {}
        if exec_file:
            details["exec_file"] = exec_file
        if report_directory:
            details["report_directory"] = report_directory
        super().__init__(message, details)
