"""配置管理模块."""

import shlex
import tempfile
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from testng_runner.exceptions import ConfigurationError

PROJECT_SETTINGS_FILE = "testng-runner.yaml"

DEFAULT_JAVA_PROPERTIES = Path.home() / ".testng-runner" / "java.properties"

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    """应用配置 (环境变量 / .env)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TESTNG_RUNNER_",
        extra="ignore",
    )

    java_properties_file: Path = DEFAULT_JAVA_PROPERTIES
    results_tmp_dir: Path = Path(tempfile.gettempdir())

    # 变更检测配置
    pr_diff_timeout: float = 10.0
    upstream_ref: str = "origin"

    # JaCoCo 配置
    jacoco_agent_jar: Optional[Path] = None
    jacoco_cli_jar: Optional[Path] = None

    log_level: str = "INFO"

    @field_validator("pr_diff_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """验证超时时间."""
        if v <= 0:
            raise ValueError("超时时间必须大于 0")
        return v

    @field_validator("upstream_ref")
    @classmethod
    def validate_upstream_ref(cls, v: str) -> str:
        """验证上游引用."""
        if not v.strip():
            raise ValueError("上游引用不能为空")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"无效的日志级别: {v}")
        return level


class ProjectSettings(BaseModel):
    """单个 Java 项目的测试配置 (testng-runner.yaml)."""

    name: str = ""
    java_version: Optional[str] = None
    jvm_arguments: str = ""
    testng_arguments: str = ""
    verbosity: int = 1
    report_directory: Path = Path("build/test-reports")
    listeners: List[str] = Field(default_factory=list)
    code_coverage: bool = False

    main_jars: List[Path] = Field(default_factory=list)
    test_jars: List[Path] = Field(default_factory=list)
    classpath: List[Path] = Field(default_factory=list)

    @field_validator("verbosity")
    @classmethod
    def validate_verbosity(cls, v: int) -> int:
        """验证 TestNG 日志级别."""
        if not 0 <= v <= 10:
            raise ValueError("verbosity 必须在 0 到 10 之间")
        return v

    @field_validator("jvm_arguments", "testng_arguments")
    @classmethod
    def validate_arguments(cls, v: str) -> str:
        """验证参数字符串可以按 shell 规则拆分."""
        try:
            shlex.split(v)
        except ValueError as e:
            raise ValueError(f"无法解析参数 [{v}]: {e}")
        return v

    @field_validator("java_version", mode="before")
    @classmethod
    def coerce_java_version(cls, v):
        # YAML 会把 1.8 解析成浮点数
        if v is None:
            return v
        return str(v)


class SelectionOptions(BaseModel):
    """测试选择选项."""

    only_failed: bool = False
    only_changed: bool = False
    commit_range: Optional[str] = None
    test_patterns: List[str] = Field(default_factory=list)
    include_groups: List[str] = Field(default_factory=list)
    exclude_groups: List[str] = Field(default_factory=list)

    @field_validator("test_patterns", "include_groups", "exclude_groups")
    @classmethod
    def strip_blank(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]

    @field_validator("commit_range")
    @classmethod
    def validate_commit_range(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


def load_project_settings(project_dir: Path) -> ProjectSettings:
    """加载项目配置.

    Args:
        project_dir: 项目目录

    Returns:
        ProjectSettings: 项目配置，配置文件不存在时使用默认值
    """
    config_file = project_dir / PROJECT_SETTINGS_FILE
    data = {}

    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in project settings: {e}",
                config_file=str(config_file),
            )
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Project settings must be a mapping",
                config_file=str(config_file),
            )

    try:
        project_settings = ProjectSettings(**data)
    except ValidationError as e:
        first = e.errors()[0]
        raise ConfigurationError(
            f"Invalid project settings: {first['msg']}",
            config_key=".".join(str(p) for p in first["loc"]),
            config_file=str(config_file),
        )

    if not project_settings.name:
        project_settings.name = project_dir.resolve().name

    return project_settings


settings = Settings()
