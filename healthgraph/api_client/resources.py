"""Predefined Health Graph API routes."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..models import Resource

__all__ = ["RESOURCES", "FITNESS_ACTIVITY_FEED"]

FITNESS_ACTIVITY_FEED = "fitnessActivityFeed"

RESOURCES: Mapping[str, Resource] = MappingProxyType(
    {
        "user": Resource(
            media_type="application/vnd.com.runkeeper.User+json",
            uri="/user",
        ),
        "profile": Resource(
            media_type="application/vnd.com.runkeeper.Profile+json",
            uri="/profile",
        ),
        "settings": Resource(
            media_type="application/vnd.com.runkeeper.Settings+json",
            uri="/settings",
        ),
        FITNESS_ACTIVITY_FEED: Resource(
            media_type="application/vnd.com.runkeeper.FitnessActivityFeed+json",
            uri="/fitnessActivities",
        ),
        "fitnessActivities": Resource(
            media_type="application/vnd.com.runkeeper.FitnessActivity+json",
            uri="/fitnessActivities",
        ),
    }
)
