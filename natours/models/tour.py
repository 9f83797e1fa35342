"""
旅游线路模型
"""

from sqlalchemy import Boolean, Column, Float, Integer, String, Text, event
from sqlalchemy.orm import Session, validates, with_loader_criteria

from ..utils.common import slugify, snake_to_camel
from ..web.exceptions import ModelValidationError
from .base import BaseModel, ensure_number

DIFFICULTIES = ("easy", "medium", "difficult")


class Tour(BaseModel):
    """旅游线路模型"""
    __tablename__ = "tours"

    name = Column(String(40), unique=True, nullable=False)
    slug = Column(String(60), index=True)
    duration = Column(Integer, nullable=False)
    max_group_size = Column(Integer)
    difficulty = Column(String(20), nullable=False)

    # 评分统计由评论的生命周期钩子维护
    ratings_average = Column(Float, nullable=False, default=4.5)
    ratings_quantity = Column(Integer, nullable=False, default=0)

    price = Column(Float, nullable=False)
    summary = Column(String(255))
    description = Column(Text)

    # 秘密线路不出现在任何查询结果中
    secret_tour = Column(Boolean, nullable=False, default=False)

    PROTECTED_FIELDS = ("id", "created_at", "slug", "ratings_quantity")

    @validates("name")
    def validate_name(self, key, value):
        if value is None:
            return value
        value = str(value).strip()
        if len(value) < 10:
            raise ModelValidationError("name", "a tour name must have at least 10 characters", value)
        if len(value) > 40:
            raise ModelValidationError("name", "a tour name must have at most 40 characters", value)
        return value

    @validates("difficulty")
    def validate_difficulty(self, key, value):
        if value is not None and value not in DIFFICULTIES:
            raise ModelValidationError("difficulty", "difficulty is either: easy, medium, difficult", value)
        return value

    @validates("ratings_average")
    def validate_ratings_average(self, key, value):
        if value is None:
            return value
        value = ensure_number("ratingsAverage", value)
        if not 1 <= value <= 5:
            raise ModelValidationError("ratingsAverage", "rating must be between 1.0 and 5.0", value)
        return round(value, 1)

    @validates("price")
    def validate_price(self, key, value):
        if value is not None and ensure_number("price", value) <= 0:
            raise ModelValidationError("price", "a tour price must be greater than 0", value)
        return value

    @validates("duration", "max_group_size")
    def validate_positive_number(self, key, value):
        field = snake_to_camel(key)
        if value is not None and ensure_number(field, value) < 1:
            raise ModelValidationError(field, f"{field} must be a positive number", value)
        return value


@event.listens_for(Tour, "before_insert")
@event.listens_for(Tour, "before_update")
def set_tour_slug(mapper, connection, target: Tour) -> None:
    """根据名称生成 slug"""
    if target.name:
        target.slug = slugify(target.name)


@event.listens_for(Session, "do_orm_execute")
def hide_secret_tours(execute_state) -> None:
    """所有 ORM 查询默认排除秘密线路，设置 include_secret_tours 执行选项时不过滤"""
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.is_relationship_load
        or execute_state.execution_options.get("include_secret_tours", False)
    ):
        return

    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(Tour, Tour.secret_tour.is_(False), include_aliases=True)
    )
