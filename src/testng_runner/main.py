"""CLI 入口模块."""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from testng_runner import __version__
from testng_runner.config import SelectionOptions, load_project_settings, settings
from testng_runner.exceptions import TestExecutionError, TestNGRunnerError
from testng_runner.selection.modes import mode_name
from testng_runner.selection.results_reader import TestRunSummary, read_run_summary
from testng_runner.tools.jacoco import COVERAGE_REPORT_DIRECTORY, parse_coverage_summary, produce_coverage_report
from testng_runner.tools.test_executor import TestNGExecutor

app = typer.Typer(
    name="testng-runner",
    help="选择并运行 Java 项目中的 TestNG 测试",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """版本回调."""
    if value:
        console.print(f"[bold blue]testng-runner[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
) -> None:
    """testng-runner: TestNG 测试选择与执行工具."""
    pass


def _selection_options(
    tests: Optional[List[str]],
    groups: Optional[List[str]],
    excludes: Optional[List[str]],
    only_failed: bool,
    only_changes: bool,
    commit_range: Optional[str],
) -> SelectionOptions:
    return SelectionOptions(
        only_failed=only_failed,
        only_changed=only_changes,
        commit_range=commit_range,
        test_patterns=tests or [],
        include_groups=groups or [],
        exclude_groups=excludes or [],
    )


def _print_summary(summary: Optional[TestRunSummary]) -> None:
    if summary is None:
        return

    table = Table(title="测试结果", box=box.ROUNDED)
    table.add_column("总数", style="cyan")
    table.add_column("通过", style="green")
    table.add_column("失败", style="red")
    table.add_column("跳过", style="yellow")
    table.add_column("通过率", style="cyan")
    table.add_row(
        str(summary.total),
        str(summary.passed),
        str(summary.failed),
        str(summary.skipped),
        f"{summary.success_rate:.1f}%",
    )
    console.print(table)


@app.command(name="test")
def run_tests(
    project: Path = typer.Argument(
        Path("."), help="项目路径", exists=True, file_okay=False, dir_okay=True
    ),
    tests: Optional[List[str]] = typer.Option(
        None, "--test", "-t", help="只运行匹配的测试类 (简单类名、全限定名或子串)"
    ),
    groups: Optional[List[str]] = typer.Option(
        None, "--group", "-g", help="只运行这些 TestNG 分组"
    ),
    excludes: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x", help="排除这些 TestNG 分组"
    ),
    only_failed: bool = typer.Option(
        False, "--only-failed", help="只运行上一次失败的测试"
    ),
    only_changes: bool = typer.Option(
        False, "--only-changes", help="只运行当前 PR 或分支中变更文件对应的测试"
    ),
    commit_range: Optional[str] = typer.Option(
        None, "--commit-range", help="覆盖默认的比较范围 (提交或提交范围)"
    ),
    keep_xml: bool = typer.Option(
        False, "--keep-xml", help="保留生成的 TestNG 套件文件"
    ),
    skip_tests: bool = typer.Option(
        False, "--skip-tests", help="跳过测试"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="输出调试日志"
    ),
) -> None:
    """运行 TestNG 测试."""
    setup_logging(verbose)

    try:
        project_settings = load_project_settings(project)
        options = _selection_options(tests, groups, excludes, only_failed, only_changes, commit_range)

        config_table = Table(box=box.ROUNDED)
        config_table.add_column("配置项", style="cyan")
        config_table.add_column("值", style="green")
        config_table.add_row("项目", project_settings.name)
        config_table.add_row("Java 版本", project_settings.java_version or "-")
        config_table.add_row("报告目录", str(project_settings.report_directory))
        config_table.add_row("代码覆盖率", "是" if project_settings.code_coverage else "否")
        if options.include_groups:
            config_table.add_row("分组", ", ".join(options.include_groups))
        if options.exclude_groups:
            config_table.add_row("排除分组", ", ".join(options.exclude_groups))
        console.print(config_table)

        executor = TestNGExecutor(project, project_settings)
        outcome = executor.run(options, keep_xml=keep_xml, skip_tests=skip_tests)
    except TestExecutionError as e:
        if "results_path" in e.details:
            _print_summary(read_run_summary(Path(e.details["results_path"])))
        console.print(f"[red]错误: {escape(e.message)}[/red]")
        raise typer.Exit(1)
    except TestNGRunnerError as e:
        console.print(f"[red]错误: {escape(e.message)}[/red]")
        raise typer.Exit(1)

    if outcome.skipped:
        console.print("[yellow]已跳过测试[/yellow]")
        return

    console.print(
        f"[green]运行了 {outcome.selection.total_count} 个测试类 "
        f"(模式: {mode_name(outcome.selection.mode)})[/green]"
    )
    if outcome.suite_path:
        console.print(f"TestNG 配置已保存: {outcome.suite_path}")
    _print_summary(outcome.summary)


@app.command(name="suite")
def generate_suite(
    project: Path = typer.Argument(
        Path("."), help="项目路径", exists=True, file_okay=False, dir_okay=True
    ),
    tests: Optional[List[str]] = typer.Option(
        None, "--test", "-t", help="只包含匹配的测试类"
    ),
    groups: Optional[List[str]] = typer.Option(
        None, "--group", "-g", help="只运行这些 TestNG 分组"
    ),
    excludes: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x", help="排除这些 TestNG 分组"
    ),
    only_failed: bool = typer.Option(
        False, "--only-failed", help="只包含上一次失败的测试"
    ),
    only_changes: bool = typer.Option(
        False, "--only-changes", help="只包含变更文件对应的测试"
    ),
    commit_range: Optional[str] = typer.Option(
        None, "--commit-range", help="覆盖默认的比较范围"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="写入文件而不是输出到终端"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="输出调试日志"
    ),
) -> None:
    """生成 TestNG 套件 XML 而不运行测试."""
    setup_logging(verbose)

    try:
        options = _selection_options(tests, groups, excludes, only_failed, only_changes, commit_range)
        executor = TestNGExecutor(project)
        selection, xml = executor.prepare_suite(options)
    except TestNGRunnerError as e:
        console.print(f"[red]错误: {escape(e.message)}[/red]")
        raise typer.Exit(1)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(xml, encoding="utf-8")
        console.print(f"[green]已写入 {selection.total_count} 个测试类到 {output}[/green]")
    else:
        typer.echo(xml, nl=False)


@app.command(name="coverage-report")
def coverage_report(
    project: Path = typer.Argument(
        Path("."), help="项目路径", exists=True, file_okay=False, dir_okay=True
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="输出调试日志"
    ),
) -> None:
    """根据上一次测试运行生成 JaCoCo 覆盖率报告."""
    setup_logging(verbose)

    try:
        executor = TestNGExecutor(project)
        report_directory = produce_coverage_report(
            executor.project_dir,
            executor.java_path,
            executor.project_settings.name,
            executor.project_settings.main_jars,
        )
        summary = parse_coverage_summary(report_directory / "jacoco.xml")
    except TestNGRunnerError as e:
        console.print(f"[red]错误: {escape(e.message)}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]覆盖率报告已生成: {report_directory}[/green]")
    if summary:
        console.print(
            f"行覆盖率: {summary.line_coverage:.1f}%  分支覆盖率: {summary.branch_coverage:.1f}%"
        )


@app.command(name="config")
def show_config(
    project: Path = typer.Argument(
        Path("."), help="项目路径", exists=True, file_okay=False, dir_okay=True
    ),
) -> None:
    """显示当前配置."""
    console.print(Panel.fit(
        "[bold blue]⚙️ 当前配置[/bold blue]",
        border_style="blue"
    ))

    try:
        project_settings = load_project_settings(project)
    except TestNGRunnerError as e:
        console.print(f"[red]错误: {escape(e.message)}[/red]")
        raise typer.Exit(1)

    table = Table(box=box.ROUNDED)
    table.add_column("配置项", style="cyan")
    table.add_column("值", style="green")

    table.add_row("项目", project_settings.name)
    table.add_row("Java 版本", project_settings.java_version or "-")
    table.add_row("JVM 参数", project_settings.jvm_arguments or "-")
    table.add_row("TestNG 参数", project_settings.testng_arguments or "-")
    table.add_row("报告目录", str(project_settings.report_directory))
    table.add_row("监听器", ", ".join(project_settings.listeners) or "-")
    table.add_row("测试 jar", ", ".join(str(p) for p in project_settings.test_jars) or "-")
    table.add_row("Java 属性文件", str(settings.java_properties_file))
    table.add_row("PR 差异超时", f"{settings.pr_diff_timeout}s")
    table.add_row("上游引用", settings.upstream_ref)
    table.add_row("覆盖率报告目录", str(COVERAGE_REPORT_DIRECTORY))

    console.print(table)


if __name__ == "__main__":
    app()
