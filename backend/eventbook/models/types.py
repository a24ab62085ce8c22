from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class CaseInsensitiveEnum(TypeDecorator):
    """Store a ``str`` enum by its lowercase value in a VARCHAR column.

    Writes accept the member or any casing of its value or name; reads
    always return the member.
    """

    impl = String
    cache_ok = True

    def __init__(self, enum_cls, length=None):
        self.enum_cls = enum_cls
        super().__init__(length or max(len(member.value) for member in enum_cls))

    def _coerce(self, value):
        if isinstance(value, self.enum_cls):
            return value
        text = str(value)
        try:
            return self.enum_cls(text.lower())
        except ValueError:
            return self.enum_cls[text.upper()]

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self._coerce(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._coerce(value)
