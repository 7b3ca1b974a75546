from sqlalchemy import Enum as SAEnum


class CaseInsensitiveEnum(SAEnum):
    """Enum column stored by value that tolerates legacy spellings.

    Rows imported from older systems hold ``"CONFIRMED"`` or member names such
    as ``"IN_PROGRESS"``; both read back as the matching member, and writes
    always store the canonical value (``"in-progress"``).
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = dict(kwargs)
        kwargs.setdefault("values_callable", lambda members: [m.value for m in members])
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        return CaseInsensitiveEnum(self._enum_cls, **{**self._enum_kwargs, **kw})

    def _canonical(self, value):
        if isinstance(value, self._enum_cls):
            return value.value
        text = str(value).strip()
        member = self._enum_cls.__members__.get(text.upper().replace("-", "_"))
        return member.value if member is not None else text.lower()

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            value = self._canonical(value)
            return parent(value) if parent else value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            value = self._canonical(value)
            return parent(value) if parent else value

        return process
