#!filepath: qtdsim/config/log_config.py
from pydantic import BaseModel, ConfigDict


class LogConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    dir: str = "logs"
    rotation: str = "1 day"
    retention: str = "30 days"
    level: str = "INFO"
