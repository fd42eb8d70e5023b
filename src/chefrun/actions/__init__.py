"""Actions run against target hosts."""

from chefrun.actions.base import Action
from chefrun.actions.converge_target import ConvergeTarget, SessionState, converge

__all__ = ["Action", "ConvergeTarget", "SessionState", "converge"]
