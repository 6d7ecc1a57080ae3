"""Channel registry populated once per session."""

from .registry import ChannelRegistry, ALLOWED_CHANNEL_TYPES, is_text_like

__all__ = ['ChannelRegistry', 'ALLOWED_CHANNEL_TYPES', 'is_text_like']
