import uuid
from docstore.extensions import db
from .base import utc_now


class Version(db.Model):
    """
    Immutable snapshot of one document+locale.

    Only `status` changes after creation, and only through the VersionStore.
    """
    __tablename__ = "versions"

    version_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    document_id = db.Column(db.String(64), nullable=False)
    schema_name = db.Column(db.String(100), nullable=False)
    locale = db.Column(db.String(16), nullable=False, default="en")

    version_number = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="draft")
    # draft | published | archived

    data = db.Column(db.JSON, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
    created_by = db.Column(db.String(36), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.UniqueConstraint(
            "document_id", "schema_name", "locale", "version_number",
            name="uq_version_number",
        ),
        db.Index("idx_version_document", "document_id", "schema_name", "locale"),
    )
