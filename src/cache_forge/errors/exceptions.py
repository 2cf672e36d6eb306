"""
Cache Forge 的异常类型。

每个异常都带三段信息：what（出了什么问题）、why（原因）、how（怎么改），
CLI 直接把这三段打印给用户，JSON 输出则使用 to_dict()。

放置算法本身不抛异常：缓存关闭、输入退化、找不到合法边界，
结果都只是零断点。这里的异常只出现在配置加载、模型解析、状态反序列化和 CLI 中。

示例::

    ModelNotFoundError(
        what="未找到模型 'claude-7'。",
        why="该模型不在内置能力注册表中，也未通过策略文件注册。",
        how="使用 'cache-forge models' 查看可用模型，或在策略文件的 models 段中注册。",
    )
"""

from __future__ import annotations

from typing import Any


class CacheForgeError(Exception):
    """
    Cache Forge 异常基类。

    属性:
        what: 发生了什么
        why: 为什么发生
        how: 怎么修复
        details: 额外的上下文信息（用于调试）
    """

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.what = what
        self.why = why
        self.how = how
        self.details = details or {}

        parts = [what]
        if why:
            parts.append(f"→ 原因：{why}")
        if how:
            parts.append(f"→ 修复建议：{how}")

        self.full_message = "\n".join(parts)
        super().__init__(self.full_message)

    def __str__(self) -> str:
        return self.full_message

    def to_dict(self) -> dict[str, Any]:
        """转换为字典格式，用于 JSON 输出。"""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "what": self.what,
        }
        if self.why:
            result["why"] = self.why
        if self.how:
            result["how"] = self.how
        if self.details:
            result["details"] = self.details
        return result


# === 配置相关异常 ===


class ConfigValidationError(CacheForgeError):
    """
    配置校验异常。

    当 YAML 策略文件字段不合法时抛出（例如 hysteresis_factor 小于 1.0）。

    示例::

        raise ConfigValidationError(
            what="策略文件 'cache_forge.yaml' 校验失败。",
            why="字段 'placement → hysteresis_factor': Input should be greater than or equal to 1",
            how="hysteresis_factor 表示重新分配所需的增长倍数，必须 >= 1.0。",
            config_path="cache_forge.yaml",
        )
    """

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        config_path: str = "",
        field_path: str = "",
        **kwargs: Any,
    ) -> None:
        details = {
            "config_path": config_path,
            "field_path": field_path,
        }
        details.update(kwargs)
        super().__init__(what=what, why=why, how=how, details=details)
        self.config_path = config_path
        self.field_path = field_path


class PolicyLoadError(CacheForgeError):
    """策略文件不存在、无法读取或 YAML 格式错误时抛出。"""

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        file_path: str = "",
        **kwargs: Any,
    ) -> None:
        details = {"file_path": file_path}
        details.update(kwargs)
        super().__init__(what=what, why=why, how=how, details=details)
        self.file_path = file_path


# === 模型与策略解析异常 ===


class ModelNotFoundError(CacheForgeError):
    """
    模型未找到异常。

    当指定的模型名既不在能力注册表中，也无法通过别名或前缀匹配时抛出。
    """

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        model_id: str = "",
        available_models: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        details: dict[str, Any] = {"model_id": model_id}
        if available_models:
            details["available_models"] = available_models
        details.update(kwargs)
        super().__init__(what=what, why=why, how=how, details=details)
        self.model_id = model_id


class UnknownPolicyError(CacheForgeError):
    """
    放置策略名称未注册时抛出。

    示例::

        raise UnknownPolicyError(
            what="未知的断点放置策略 'three_point'。",
            why="该名称既不是内置策略，也未通过 register_policy() 注册。",
            how="可用策略：multi_point, single_point。",
            policy_name="three_point",
        )
    """

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        policy_name: str = "",
        **kwargs: Any,
    ) -> None:
        details = {"policy_name": policy_name}
        details.update(kwargs)
        super().__init__(what=what, why=why, how=how, details=details)
        self.policy_name = policy_name


# === 状态相关异常 ===


class StateFormatError(CacheForgeError):
    """
    持久化的 PlacementState 无法解析时抛出。

    引擎本身从不抛出此异常；它只在调用方从文件或外部存储
    反序列化状态时出现（例如 CLI 的 --state 参数）。
    """

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        source: str = "",
        **kwargs: Any,
    ) -> None:
        details = {"source": source}
        details.update(kwargs)
        super().__init__(what=what, why=why, how=how, details=details)
        self.source = source


class TokenizerError(CacheForgeError):
    """请求的 Token 计数器名称无法解析时抛出。"""

    pass
