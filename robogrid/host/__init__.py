"""Script host module for robogrid.

Provides the primitive API for learner code, the shadow (plan) world and
preflight validation.
"""

from .shadow import ShadowWorld
from .script_host import ScriptHost
from .preflight import validate_script_actions, PRIMITIVE_NAMES

__all__ = [
    "ShadowWorld",
    "ScriptHost",
    "validate_script_actions",
    "PRIMITIVE_NAMES",
]
