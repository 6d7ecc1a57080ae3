"""Mention detection and the pending mention cache."""

from .detector import MentionDetector, mention_token
from .cache import MentionCache

__all__ = ['MentionDetector', 'MentionCache', 'mention_token']
