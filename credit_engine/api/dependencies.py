"""Shared dependencies for engine handlers"""

from typing import Optional

from credit_engine.config import settings
from credit_engine.domain.models import EnginePolicy


def get_policy(policy: Optional[EnginePolicy] = None) -> EnginePolicy:
    """Use the caller's policy snapshot, or resolve one from settings"""
    return policy if policy is not None else settings.policy()
