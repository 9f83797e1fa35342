"""
元数据存储

把任意键值对附加到类或类成员上，供路由装饰器和 @controller 之间传递信息。
元数据直接保存在持有者对象的 __natours_metadata__ 属性中，生命周期与持有者相同。
"""

import inspect
from typing import Any, Hashable, List, Optional

METADATA_ATTR = "__natours_metadata__"


def _resolve_holder(target: Any, member: Optional[str] = None) -> Any:
    """
    解析元数据的实际持有者

    指定 member 时，在 target 上静态查找该成员（不触发描述符绑定），
    staticmethod/classmethod 解包为底层函数，保证与装饰器阶段看到的是同一个对象。
    """
    if member is None:
        return target

    holder = inspect.getattr_static(target, member)
    if isinstance(holder, (staticmethod, classmethod)):
        holder = holder.__func__
    return holder


def _own_store(holder: Any) -> Optional[dict]:
    # 只读取持有者自身的存储，子类不会继承父类的元数据
    try:
        return vars(holder).get(METADATA_ATTR)
    except TypeError:
        return None


def define_metadata(key: Hashable, value: Any, target: Any, member: Optional[str] = None) -> None:
    """
    定义元数据，同一键后写入的值覆盖先写入的值

    Args:
        key: 元数据键
        value: 元数据值
        target: 目标对象（函数或类）
        member: 目标类的成员名称
    """
    holder = _resolve_holder(target, member)
    store = _own_store(holder)
    if store is None:
        store = {}
        setattr(holder, METADATA_ATTR, store)
    store[key] = value


def get_metadata(key: Hashable, target: Any, member: Optional[str] = None, default: Any = None) -> Any:
    """
    获取元数据

    Args:
        key: 元数据键
        target: 目标对象
        member: 目标类的成员名称
        default: 元数据不存在时的返回值
    """
    try:
        holder = _resolve_holder(target, member)
    except AttributeError:
        return default
    store = _own_store(holder)
    if not store or key not in store:
        return default
    return store[key]


def has_metadata(key: Hashable, target: Any, member: Optional[str] = None) -> bool:
    """判断元数据是否存在"""
    try:
        holder = _resolve_holder(target, member)
    except AttributeError:
        return False
    store = _own_store(holder)
    return bool(store) and key in store


def get_metadata_keys(target: Any, member: Optional[str] = None) -> List[Hashable]:
    """获取目标上定义的所有元数据键"""
    try:
        holder = _resolve_holder(target, member)
    except AttributeError:
        return []
    return list(_own_store(holder) or {})
