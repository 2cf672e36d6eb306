"""
策略文件的读取、合并与校验。

流程：定位 YAML 文件 → 解析为字典 → 叠加运行时覆盖 → 交给 PolicyConfig 校验。
任何一步失败都转换为带"三段式"信息的 PolicyLoadError / ConfigValidationError，
校验错误精确到字段路径（如 placement.hysteresis_factor）。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from cache_forge.config.schema import PolicyConfig
from cache_forge.errors import ConfigValidationError, PolicyLoadError

logger = logging.getLogger(__name__)

# 未显式指定路径时，按顺序在当前目录查找
DEFAULT_POLICY_PATHS = (
    Path("cache_forge.yaml"),
    Path("cache_forge.yml"),
    Path(".cache_forge/policy.yaml"),
)


def load_policy(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> PolicyConfig:
    """
    读取策略文件并返回校验后的 PolicyConfig。

    path 为 None 时依次尝试 DEFAULT_POLICY_PATHS，都不存在则使用内置默认值。
    overrides 会逐层合并到文件内容之上（嵌套字典按键合并，其余值直接替换）。

    异常:
        PolicyLoadError: 文件缺失、无法读取或不是合法的 YAML 字典
        ConfigValidationError: 字段取值不合法
    """
    source = _locate(path)
    raw = _read_policy_yaml(source) if source is not None else {}
    if overrides:
        raw = _merge(raw, overrides)
    return _build_config(raw, str(source) if source is not None else "<default>")


def _locate(path: str | Path | None) -> Path | None:
    if path is not None:
        return Path(path)
    found = next((candidate for candidate in DEFAULT_POLICY_PATHS if candidate.exists()), None)
    if found is None:
        logger.debug("当前目录没有策略文件，使用内置默认策略。")
    else:
        logger.info("使用策略文件 %s", found)
    return found


def _read_policy_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise PolicyLoadError(
            what=f"找不到策略文件 '{path}'。",
            why=f"解析后的绝对路径为 '{path.absolute()}'，该位置没有文件。",
            how="确认 --policy 参数或 policy_path 是否写错；"
                "运行 'cache-forge init' 可以生成一份带默认值的 cache_forge.yaml。",
            file_path=str(path),
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise PolicyLoadError(
            what=f"读取策略文件 '{path}' 失败。",
            why=str(e),
            how="策略文件需要可读且使用 UTF-8 编码。",
            file_path=str(path),
        ) from e
    except yaml.YAMLError as e:
        raise PolicyLoadError(
            what=f"策略文件 '{path}' 不是合法的 YAML。",
            why=str(e),
            how="根据报错中的行列号修正缩进或引号。",
            file_path=str(path),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PolicyLoadError(
            what=f"策略文件 '{path}' 的顶层结构不对。",
            why=f"顶层应为键值映射，实际解析出 {type(data).__name__}。",
            how="顶层写成 placement: / tokenizer: / models: 这样的段落，"
                "参考 'cache-forge init' 生成的文件。",
            file_path=str(path),
        )
    return data


def _build_config(raw: dict[str, Any], source: str) -> PolicyConfig:
    try:
        return PolicyConfig(**raw)
    except ValidationError as e:
        problems = e.errors()
        fields = [".".join(str(part) for part in problem["loc"]) for problem in problems]
        raise ConfigValidationError(
            what=f"策略 '{source}' 有 {len(problems)} 处字段不合法。",
            why="\n".join(
                f"  {field}: {problem['msg']}" for field, problem in zip(fields, problems)
            ),
            how="按字段路径逐项修正；'cache-forge validate <path>' 可以在部署前做同样的检查。",
            config_path=source,
            field_path=fields[0] if fields else "",
        ) from e


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def validate_policy_file(path: str | Path) -> list[str]:
    """校验策略文件，返回错误信息列表；空列表表示通过。不抛异常。"""
    try:
        load_policy(path=path)
    except (PolicyLoadError, ConfigValidationError) as e:
        return [e.full_message]
    return []


def dump_default_policy() -> str:
    """默认策略的 YAML 文本，附带一个自定义模型示例（供 'cache-forge init' 使用）。"""
    data = PolicyConfig().model_dump(mode="json")
    data["models"] = {
        "my-custom-model": {
            "supports_cache": True,
            "max_breakpoints": 4,
            "min_tokens_per_breakpoint": 1024,
            "cacheable_segments": ["system", "messages"],
        }
    }
    return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
