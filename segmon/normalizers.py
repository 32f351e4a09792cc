from datetime import datetime


def _todatetime(value):
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return value


def parse_dates(*fields: str):
    """
    Build a document normaliser that turns ISO-8601 strings in `fields` into
    datetimes, so stored timestamps can be used with range filters.
    Values that don't parse are passed through untouched.
    """

    def normalise(doc: dict) -> dict:
        out = dict(doc)
        for name in fields:
            if isinstance(out.get(name), str):
                out[name] = _todatetime(out[name])
        return out

    return normalise
