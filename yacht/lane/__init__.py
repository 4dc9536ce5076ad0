"""Scoped resource tracking: artefacts and the lane that owns them."""

from .artefact import Artefact, CallbackArtefact
from .lane import Lane

__all__ = ["Artefact", "CallbackArtefact", "Lane"]
