from datetime import date, datetime


def normalize_document(document, admin=False):
    base = {
        key: value.isoformat() if isinstance(value, (datetime, date)) else value
        for key, value in document.items()
    }

    if not admin:
        base.pop("created_by", None)
        base.pop("updated_by", None)

    return base
