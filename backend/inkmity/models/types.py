from sqlalchemy import JSON
from sqlalchemy import Enum as SAEnum
from sqlalchemy.ext.mutable import MutableDict, MutableList


class CaseInsensitiveEnum(SAEnum):
    """Enum column storing the member values, matched case-insensitively.

    Clients send ``"Tattoo_Session"`` or ``"BOOKED"`` now and then; both are
    normalized to the lowercase enum value on the way in and on the way out.
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda enum: [e.value for e in enum])
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        params = {**self._enum_kwargs, **kw}
        return CaseInsensitiveEnum(self._enum_cls, **params)

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            value = value.strip().lower() if isinstance(value, str) else value.value
            return parent(value) if parent else value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            if isinstance(value, str):
                value = value.lower()
            return parent(value) if parent else value

        return process


# JSON columns that track in-place mutation (e.g. availability["weekly"]["mon"] = [...])
JSONDict = MutableDict.as_mutable(JSON)
JSONList = MutableList.as_mutable(JSON)
