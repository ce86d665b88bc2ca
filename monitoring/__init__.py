"""monitoring package"""
from .logger import (
    timed,
    start_metrics_server,
    get_logger,
    CALC_REQUESTS,
    CALC_LATENCY,
    DATA_LOADS,
    VALIDATION_FAILURES,
)

__all__ = [
    "timed", "start_metrics_server", "get_logger",
    "CALC_REQUESTS", "CALC_LATENCY", "DATA_LOADS", "VALIDATION_FAILURES",
]
