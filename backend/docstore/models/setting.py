from docstore.extensions import db
from .base import BaseModel


class Setting(BaseModel):
    __tablename__ = "settings"

    key = db.Column(db.String(100), nullable=False)
    value = db.Column(db.JSON, nullable=True)
    group = db.Column(db.String(100), nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False, default="string")

    __table_args__ = (
        db.UniqueConstraint("group", "key", name="uq_setting_group_key"),
    )
