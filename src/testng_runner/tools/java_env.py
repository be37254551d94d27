"""Java 环境解析模块."""

import os
from pathlib import Path
from typing import Dict, Optional

from testng_runner.config import settings
from testng_runner.exceptions import JavaEnvironmentError

JAVA_PROPERTIES_HELP = (
    "You must create the file [{path}] that contains the system configuration for the Java system. "
    "This file should include the location of the JDK by version. These properties look like this:\n\n"
    "  1.8=/Library/Java/JavaVirtualMachines/jdk1.8.0.jdk/Contents/Home\n"
    "  17=/Library/Java/JavaVirtualMachines/jdk-17.jdk/Contents/Home\n"
    "  21=/usr/lib/jvm/java-21-openjdk\n"
)


def load_java_properties(properties_file: Path) -> Dict[str, str]:
    """读取 ``<版本>=<JDK 目录>`` 格式的属性文件."""
    properties = {}
    with open(properties_file, "r", encoding="utf-8") as f:
        for raw_line in f:
            line = raw_line.strip()
            if not line or line.startswith(("#", "!")):
                continue
            separator = min(
                (i for i in (line.find("="), line.find(":")) if i >= 0),
                default=-1,
            )
            if separator < 0:
                continue
            key = line[:separator].strip()
            value = line[separator + 1:].strip()
            if key:
                properties[key] = value
    return properties


def resolve_java_executable(
    java_version: Optional[str],
    properties_file: Optional[Path] = None,
) -> Path:
    """根据项目声明的 Java 版本找到 java 可执行文件.

    Args:
        java_version: 项目配置中的 Java 版本
        properties_file: 版本到 JDK 目录的映射文件

    Returns:
        Path: java 可执行文件路径

    Raises:
        JavaEnvironmentError: 版本未配置、映射缺失或可执行文件不可用
    """
    properties_file = Path(properties_file or settings.java_properties_file)
    help_text = JAVA_PROPERTIES_HELP.format(path=properties_file)

    if not java_version:
        raise JavaEnvironmentError(
            "You must configure the Java version to use in testng-runner.yaml. "
            "It will look something like this:\n\n  java_version: \"17\""
        )

    if not properties_file.is_file():
        raise JavaEnvironmentError(help_text, java_version=java_version)

    java_home = load_java_properties(properties_file).get(java_version)
    if not java_home:
        raise JavaEnvironmentError(
            f"No JDK is configured for version [{java_version}].\n\n{help_text}",
            java_version=java_version,
        )

    java_path = Path(java_home) / "bin" / "java"
    if not java_path.is_file():
        raise JavaEnvironmentError(
            f"The java executable [{java_path.absolute()}] does not exist.",
            java_version=java_version,
            java_path=str(java_path),
        )
    if not os.access(java_path, os.X_OK):
        raise JavaEnvironmentError(
            f"The java executable [{java_path.absolute()}] is not executable.",
            java_version=java_version,
            java_path=str(java_path),
        )

    return java_path
