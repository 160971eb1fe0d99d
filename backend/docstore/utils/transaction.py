from contextlib import contextmanager

from docstore.extensions import db


@contextmanager
def transactional(session=None):
    """
    One unit of work: commit when the block finishes, roll back and re-raise
    on any error so the scoped session stays usable.
    """
    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
