from ..extensions import db

class CompanyScopedMixin:
    cio_company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

class TimestampMixin:
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())


class UpsertMixin:
    """Insert-or-update keyed on the model's natural identifier columns.

    Models list those columns in ``__match_on__``.
    """

    __match_on__ = ()

    @classmethod
    def get_by_match(cls, **keys):
        return cls.query.filter_by(**{k: keys[k] for k in cls.__match_on__}).first()

    @classmethod
    def upsert(cls, **fields):
        row = cls.get_by_match(**fields)
        if row is None:
            row = cls(**fields)
        else:
            for k, v in fields.items():
                setattr(row, k, v)
        db.session.add(row)
        db.session.commit()
        return row

    def save(self):
        db.session.add(self)
        db.session.commit()
        return self
