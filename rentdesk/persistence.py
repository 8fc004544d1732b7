"""
Thin persistence collaborator used by the ledger and notice services.

Every write commits on its own and rolls back completely on failure, so a
caller never observes a half-applied row. Database errors are translated into
the service error taxonomy:

  - missing rows             -> NotFoundError
  - integrity / unique hits  -> ConstraintViolation
  - anything else (network,
    locked database, ...)    -> PersistenceError
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import ConstraintViolation, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class Repository:
    def __init__(self, session):
        self.session = session

    @contextmanager
    def _translate_errors(self, action):
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            raise ConstraintViolation(f"{action} rejected: {e.orig}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("%s failed: %s", action, e)
            raise PersistenceError(f"{action} failed") from e

    def find(self, model, *criteria, order_by=None, **filters):
        """Rows of ``model`` matching equality ``filters`` and extra SQL ``criteria``."""
        with self._translate_errors(f"find {model.__tablename__}"):
            query = self.session.query(model).filter_by(**filters)
            if criteria:
                query = query.filter(*criteria)
            if order_by is not None:
                query = query.order_by(order_by)
            return query.all()

    def first(self, model, *criteria, **filters):
        rows = self.find(model, *criteria, **filters)
        return rows[0] if rows else None

    def get(self, model, ident):
        with self._translate_errors(f"get {model.__tablename__}"):
            row = self.session.get(model, ident)
        if row is None:
            raise NotFoundError(f"{model.__name__} {ident} not found")
        return row

    def insert(self, model, **row):
        with self._translate_errors(f"insert {model.__tablename__}"):
            instance = model(**row)
            self.session.add(instance)
            self.session.commit()
        return instance

    def update(self, model, ident, **patch):
        instance = self.get(model, ident)
        with self._translate_errors(f"update {model.__tablename__} {ident}"):
            for field, value in patch.items():
                setattr(instance, field, value)
            self.session.commit()
        return instance

    def delete(self, model, ident):
        instance = self.get(model, ident)
        with self._translate_errors(f"delete {model.__tablename__} {ident}"):
            self.session.delete(instance)
            self.session.commit()
