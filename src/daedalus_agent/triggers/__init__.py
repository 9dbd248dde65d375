"""
Triggers - external stimuli (CLI input, schedules, webhooks) that start turns.
"""

from .base import Trigger
from .direct import DirectTrigger
from .schedule import ScheduleTrigger

__all__ = [
    "Trigger",
    "DirectTrigger",
    "ScheduleTrigger",
]
