import re

from sqlalchemy.orm import DeclarativeBase, declared_attr

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def table_name_for(class_name: str) -> str:
    """``ReminderRule`` -> ``reminder_rules``."""
    return _CAMEL_BOUNDARY.sub("_", class_name).lower() + "s"


class Base(DeclarativeBase):
    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore
        return table_name_for(cls.__name__)
