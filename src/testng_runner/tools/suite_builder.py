"""TestNG 套件 XML 生成模块."""

import logging
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from jinja2 import BaseLoader, Environment, TemplateError

from testng_runner.exceptions import SuiteGenerationError
from testng_runner.selection.test_selector import SelectionResult

logger = logging.getLogger(__name__)

DEFAULT_SUITE_NAME = "All Tests"

SUITE_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE suite SYSTEM "https://testng.org/testng-1.0.dtd">
<suite name="{{ suite_name }}" allow-return-values="true" verbose="{{ verbosity }}">
  <test name="{{ suite_name }}">
{% if not group_filter.is_empty %}
    <groups>
      <run>
{% for group in group_filter.include_groups %}
        <include name="{{ group }}"/>
{% endfor %}
{% for group in group_filter.exclude_groups %}
        <exclude name="{{ group }}"/>
{% endfor %}
      </run>
    </groups>
{% endif %}
    <classes>
{% for class_name in class_names %}
      <class name="{{ class_name }}"/>
{% endfor %}
    </classes>
  </test>
{% if listeners %}
  <listeners>
{% for listener in listeners %}
    <listener class-name="{{ listener }}"/>
{% endfor %}
  </listeners>
{% endif %}
</suite>
"""

_env = Environment(
    loader=BaseLoader(),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def build_suite_xml(
    result: SelectionResult,
    verbosity: int = 1,
    listeners: Iterable[str] = (),
    suite_name: str = DEFAULT_SUITE_NAME,
) -> str:
    """生成 TestNG 套件 XML.

    Args:
        result: 测试选择结果
        verbosity: TestNG 日志级别
        listeners: 监听器类名
        suite_name: 套件与测试名称

    Returns:
        str: XML 文本
    """
    try:
        template = _env.from_string(SUITE_TEMPLATE)
        return template.render(
            suite_name=suite_name,
            verbosity=verbosity,
            group_filter=result.group_filter,
            class_names=sorted(result.class_names),
            listeners=list(listeners),
        )
    except TemplateError as e:
        raise SuiteGenerationError(f"Failed to render TestNG suite: {e}")


def write_suite_file(xml: str, directory: Optional[Path] = None) -> Path:
    """将套件 XML 写入临时文件."""
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            prefix="testng-runner-",
            suffix="-testng.xml",
            dir=directory,
            delete=False,
        ) as f:
            f.write(xml)
            path = Path(f.name)
    except OSError as e:
        raise SuiteGenerationError(
            f"Failed to write TestNG suite file: {e}",
            suite_path=str(directory) if directory else None,
        )

    logger.debug(f"TestNG XML file contents are:\n{xml}")
    return path
