"""Lifecycle enums shared by the worker, the chat session and the navigator."""

from __future__ import annotations

from enum import Enum


class WorkerState(str, Enum):
    """Lifecycle of a generation worker as observed by its chat session."""

    NOT_READY = "NOT_READY"
    READY = "READY"
    DISCONNECTED = "DISCONNECTED"


class SessionAction(str, Enum):
    """Outcome of a chat session update that the navigator must act on."""

    NONE = "NONE"
    NAVIGATE_BACK = "NAVIGATE_BACK"
