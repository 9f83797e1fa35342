"""
请求体校验模块

提供 @validate_body 使用的校验规则、校验流程和字符串校验器
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.enums import TypeStrings

# 字符串校验器：接收字段值，返回 (是否通过, 失败时的消息)
StringValidator = Callable[[str], Tuple[bool, str]]


@dataclass(frozen=True)
class BodyRule:
    """
    请求体字段规则

    Attributes:
        name: 字段名
        type: 期望类型，取值见 TypeStrings
        validators: 字符串校验器列表，仅当 type 为 string 时执行
    """

    name: str
    type: str
    validators: Tuple[StringValidator, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, rule: Union["BodyRule", Dict[str, Any]]) -> "BodyRule":
        """将字典形式的规则转换为 BodyRule"""
        if isinstance(rule, BodyRule):
            return rule
        type_ = rule["type"]
        return cls(
            name=rule["name"],
            type=type_.value if isinstance(type_, TypeStrings) else str(type_),
            validators=tuple(rule.get("validators") or ()),
        )


def _type_matches(value: Any, type_: str) -> bool:
    """按 typeof 语义判断类型"""
    if type_ == TypeStrings.STRING:
        return isinstance(value, str)
    if type_ == TypeStrings.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_ == TypeStrings.BOOLEAN:
        return isinstance(value, bool)
    if type_ == TypeStrings.OBJECT:
        return isinstance(value, (dict, list))
    return False


def _is_missing(value: Any) -> bool:
    """None、False、0 和空字符串视为缺失，空列表和空字典不算"""
    if value is None or value is False or value == "":
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def check_body(body: Any, rules: Sequence[BodyRule]) -> Optional[Tuple[int, str]]:
    """
    按规则顺序校验请求体，返回第一个失败项

    Args:
        body: 解析后的 JSON 请求体
        rules: 字段规则列表

    Returns:
        Optional[Tuple[int, str]]: (状态码, 消息)，全部通过时返回 None
    """
    if not rules:
        return None

    if not isinstance(body, dict):
        return 400, "Invalid request"

    for rule in rules:
        value = body.get(rule.name)

        if _is_missing(value):
            return 400, f"{rule.name} is missing in the request body"

        if not _type_matches(value, rule.type):
            return 400, f"type of {rule.name} does not match to {rule.type}"

        if rule.type == TypeStrings.STRING:
            for validator in rule.validators:
                validated, error_message = validator(value)
                if not validated:
                    return 406, error_message

    return None


def validate_request_body(rules: Iterable[Union[BodyRule, Dict[str, Any]]]) -> Callable[[Request], Optional[JSONResponse]]:
    """
    生成请求体校验器

    Args:
        rules: 字段规则，支持 BodyRule 或 {"name": ..., "type": ...} 字典

    Returns:
        校验函数，校验失败时返回错误响应，通过时返回 None
    """
    body_rules: List[BodyRule] = [BodyRule.of(rule) for rule in rules]

    def body_validator(request: Request) -> Optional[JSONResponse]:
        failure = check_body(getattr(request.state, "body", None), body_rules)
        if failure is None:
            return None
        status_code, message = failure
        return JSONResponse(status_code=status_code, content={"status": "failed", "message": message})

    body_validator.rules = body_rules
    return body_validator


def regex_match(pattern: str) -> StringValidator:
    """字符串需匹配给定正则表达式"""
    compiled = re.compile(pattern)

    def validator(value: str) -> Tuple[bool, str]:
        return (
            compiled.search(value) is not None,
            f"{value} doesn't match the given regular expression pattern",
        )

    return validator


_EMAIL_REGEX = re.compile(
    r'^(([^<>()\[\]\.,;:\s@"]+(\.[^<>()\[\]\.,;:\s@"]+)*)|(".+"))'
    r'@(([^<>()\[\]\.,;:\s@"]+\.)+[^<>()\[\]\.,;:\s@"]{2,})$',
    re.IGNORECASE,
)


def is_email(value: str) -> Tuple[bool, str]:
    """字符串需为合法邮箱地址"""
    return _EMAIL_REGEX.match(value) is not None, f"{value} is not a email"


def min_length(length: int) -> StringValidator:
    """字符串长度大于 length"""

    def validator(value: str) -> Tuple[bool, str]:
        return len(value) > length, f"{value} has less than {length} characters"

    return validator


def max_length(length: int) -> StringValidator:
    """字符串长度小于 length"""

    def validator(value: str) -> Tuple[bool, str]:
        return len(value) < length, f"{value} has more than {length} characters"

    return validator
