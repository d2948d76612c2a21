"""
daylog CLI 入口

使用 Typer 和 Rich 提供命令行界面:
- write: 写入一条日志
- sweep: 立即清理过期日志
- stats: 查看日志目录统计
- config: 查看当前生效的配置
"""

import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .cleaner import LogCleaner
from .config import settings
from .diagnostics import setup_diagnostics
from .logger import Logger

# Typer 应用
app = typer.Typer(
    name="daylog",
    help="daylog - 异步按天轮转的文件日志",
    add_completion=False,
)

# Rich 控制台
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出 daylog 自身的调试信息"),
):
    """配置诊断日志"""
    setup_diagnostics("DEBUG" if verbose else settings.diagnostic_level)


def _log_dir(directory: Optional[str]) -> str:
    return settings.log_dir if directory is None else directory


@app.command()
def write(
    message: str = typer.Argument(..., help="日志内容"),
    error: bool = typer.Option(False, "--error", "-e", help="以 Error 级别写入"),
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="日志目录"),
    max_days: Optional[int] = typer.Option(None, "--max-days", help="日志保留天数"),
):
    """写入一条日志"""
    log = Logger(
        queue_size=settings.queue_size,
        sticky_error_level=settings.sticky_error_level,
        max_total_size_mb=settings.max_total_size_mb,
    )
    log.configure(
        settings.level,
        _log_dir(directory),
        settings.max_days if max_days is None else max_days,
    )
    with log:
        if error:
            log.errorf("%s", message)
        else:
            log.infof("%s", message)
        path = log.current_file

    console.print(f"[green]✓[/green] 已写入 {path}")


@app.command()
def sweep(
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="日志目录"),
    max_days: Optional[int] = typer.Option(None, "--max-days", help="日志保留天数"),
):
    """立即清理过期日志"""
    cleaner = LogCleaner(
        os.path.abspath(_log_dir(directory) or "."),
        retention_days=settings.max_days if max_days is None else max_days,
        max_total_size_mb=settings.max_total_size_mb,
    )
    result = cleaner.cleanup()

    table = Table(title="清理结果")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="green")
    table.add_row("by_age", str(result["by_age"]))
    table.add_row("by_size", str(result["by_size"]))
    table.add_row("freed_mb", f"{result['freed_mb']:.2f}")
    console.print(table)

    if "error" in result:
        console.print(f"[red]✗[/red] 清理中止: {result['error']}")
        raise typer.Exit(1)


@app.command()
def stats(
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="日志目录"),
):
    """查看日志目录统计"""
    log_dir = os.path.abspath(_log_dir(directory) or ".")
    info = LogCleaner(log_dir).get_stats()

    table = Table(title=f"日志统计: {log_dir}")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="green")
    table.add_row("file_count", str(info["file_count"]))
    table.add_row("total_size_mb", f"{info['total_size_mb']:.2f}")
    table.add_row("oldest_file", info["oldest_file"] or "-")
    table.add_row("newest_file", info["newest_file"] or "-")
    console.print(table)


@app.command()
def config():
    """查看当前生效的配置"""
    table = Table(title="daylog 配置")
    table.add_column("配置项", style="cyan")
    table.add_column("值", style="green")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))
    table.add_row("log_dir_path", str(settings.log_dir_path))
    console.print(table)


if __name__ == "__main__":
    app()
