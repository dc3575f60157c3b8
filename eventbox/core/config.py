import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    log_level: str = "info"
    # Only deferred strategies; the built-in default is never synchronous
    default_emitter: Literal["soon", "later"] = "soon"


@lru_cache
def get_settings() -> Settings:
    # Load .env if present (noop if already loaded)
    load_dotenv()
    return Settings(
        log_level=os.getenv("EVENTBOX_LOG_LEVEL", "info"),
        default_emitter=os.getenv("EVENTBOX_DEFAULT_EMITTER", "soon").strip().lower(),
    )
