import os
from dotenv import load_dotenv

load_dotenv()


def _int_or_none(value):
    if value is None or str(value).strip() == "":
        return None
    return int(value)


def _flag(value, default=False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SEGMON_BASE_PATH = os.getenv("SEGMON_BASE_PATH", "./segmon-data")
    SEGMON_SEGMENT_SIZE = _int_or_none(os.getenv("SEGMON_SEGMENT_SIZE", str(50 * 1024)))
    SEGMON_MAX_ITEMS_PER_SEGMENT = _int_or_none(os.getenv("SEGMON_MAX_ITEMS_PER_SEGMENT"))
    SEGMON_ID_LENGTH = int(os.getenv("SEGMON_ID_LENGTH", "6"))
    SEGMON_ATOMIC_WRITES = _flag(os.getenv("SEGMON_ATOMIC_WRITES"))


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False
    SEGMON_ATOMIC_WRITES = _flag(os.getenv("SEGMON_ATOMIC_WRITES"), default=True)


class TestConfig(Config):
    TESTING = True
