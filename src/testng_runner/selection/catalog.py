"""测试类目录构建 - 扫描测试 jar 中的测试类."""

import logging
import zipfile
from pathlib import Path
from typing import Iterable, List, Set

from testng_runner.exceptions import ClassCatalogError

logger = logging.getLogger(__name__)

TEST_CLASS_SUFFIX = "Test"
CLASS_FILE_EXTENSION = ".class"


def is_test_class_name(class_name: str) -> bool:
    """类名是否符合测试类命名约定."""
    return class_name.endswith(TEST_CLASS_SUFFIX)


def is_test_class_entry(entry_name: str) -> bool:
    """jar 条目是否为测试类文件 (以 Test.class 结尾)."""
    return entry_name.endswith(TEST_CLASS_SUFFIX + CLASS_FILE_EXTENSION)


def entry_to_class_name(entry_name: str) -> str:
    """将 jar 条目名转换为全限定类名.

    例如 ``org/example/FooTest.class`` -> ``org.example.FooTest``.
    """
    name = entry_name[: -len(CLASS_FILE_EXTENSION)]
    return name.replace("/", ".")


def simple_class_name(class_name: str) -> str:
    return class_name.rsplit(".", 1)[-1]


def scan_jar(jar_path: Path) -> Set[str]:
    """扫描单个 jar 中的测试类.

    Args:
        jar_path: jar 文件路径

    Returns:
        Set[str]: 全限定测试类名集合
    """
    class_names = set()

    try:
        with zipfile.ZipFile(jar_path) as jar:
            for info in jar.infolist():
                if info.is_dir():
                    continue
                if is_test_class_entry(info.filename):
                    class_names.add(entry_to_class_name(info.filename))
    except FileNotFoundError:
        raise ClassCatalogError(
            f"Test jar not found: {jar_path}",
            jar_path=str(jar_path),
        )
    except zipfile.BadZipFile as e:
        raise ClassCatalogError(
            f"Invalid jar file {jar_path}: {e}",
            jar_path=str(jar_path),
        )

    logger.debug(f"Found {len(class_names)} test classes in {jar_path}")
    return class_names


def build_class_catalog(jar_paths: Iterable[Path]) -> List[str]:
    """构建候选测试类目录.

    Args:
        jar_paths: 测试 jar 路径列表

    Returns:
        List[str]: 排序去重后的全限定测试类名
    """
    catalog: Set[str] = set()
    for jar_path in jar_paths:
        catalog.update(scan_jar(Path(jar_path)))
    return sorted(catalog)
