"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Phase(StrEnum):
    WAITING = "waiting"
    SCRATCH = "scratch"
    RACE = "race"
    FINISHED = "finished"
