"""
Cache Forge CLI — 命令行工具入口。

提供 plan / models / validate / init 子命令。

用法::

    cache-forge --help
    cache-forge init
    cache-forge plan --input conversation.json --model claude-sonnet-4
    cache-forge plan -i turn2.json --state state.json --write-state
    cache-forge models
    cache-forge validate cache_forge.yaml
"""

from __future__ import annotations

import typer

from cache_forge.cli.utils import create_console

# 创建主应用
app = typer.Typer(
    name="cache-forge",
    help="Cache Forge — 提示缓存断点放置引擎 CLI",
    add_completion=False,
    no_args_is_help=True,
)

console = create_console()


# ============================================================
# 子命令注册
# ============================================================

@app.command(name="init")
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="强制覆盖已存在的文件",
    ),
) -> None:
    """在当前目录生成默认策略文件 cache_forge.yaml。"""
    from cache_forge.cli.cmd_init import init_command
    init_command(force=force)


@app.command(name="validate")
def validate(
    path: str = typer.Argument(
        "cache_forge.yaml",
        help="YAML 策略文件路径",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="严格模式：将警告视为错误",
    ),
) -> None:
    """校验 YAML 策略文件的语法和语义正确性。"""
    from cache_forge.cli.cmd_validate import validate_command
    validate_command(path=path, strict=strict)


@app.command(name="plan")
def plan(
    input_file: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="对话文件路径（JSON 或 YAML，含 messages 和可选的 system_prompt）",
    ),
    model: str = typer.Option(
        "claude-sonnet-4",
        "--model",
        "-m",
        help="目标模型名称或别名",
    ),
    state_file: str | None = typer.Option(
        None,
        "--state",
        "-s",
        help="上一轮 PlacementState 的 JSON 文件（不存在时按新会话处理）",
    ),
    write_state: bool = typer.Option(
        False,
        "--write-state",
        help="把本轮的新状态写回 --state 文件",
    ),
    policy: str | None = typer.Option(
        None,
        "--policy",
        "-p",
        help="策略文件路径（默认自动搜索）",
    ),
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：rich（Rich 面板）/ json（完整结果）",
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="本轮关闭缓存（对应 use_cache=False）",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="详细输出（显示调试日志）",
    ),
) -> None:
    """为对话文件计算缓存断点。"""
    from cache_forge.cli.cmd_plan import plan_command
    plan_command(
        input_file=input_file,
        model=model,
        state_file=state_file,
        write_state=write_state,
        policy=policy,
        format=format,
        no_cache=no_cache,
        verbose=verbose,
    )


@app.command(name="models")
def models(
    model: str | None = typer.Argument(
        None,
        help="只显示该模型（支持别名和带版本后缀的名称）",
    ),
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：rich（表格）/ json",
    ),
) -> None:
    """列出内置模型的缓存能力。"""
    from cache_forge.cli.cmd_models import models_command
    models_command(model=model, format=format)


@app.command(name="version")
def version() -> None:
    """显示版本信息。"""
    from cache_forge import __version__
    console.print(f"Cache Forge v{__version__}")


# ============================================================
# CLI 入口点
# ============================================================

def main() -> None:
    """CLI 入口点。"""
    app()


if __name__ == "__main__":
    main()
