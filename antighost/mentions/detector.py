#!/usr/bin/env python3
"""
Mention Detector - Pure Business Logic
Decides which messages mention the current user. No storage, no I/O.
"""

from ..models import Message


def mention_token(user_id: str) -> str:
    """The token Discord embeds in message content for a user mention"""
    return f"<@{user_id}>"


class MentionDetector:
    """Stateless predicates over message payloads"""

    @staticmethod
    def mentions_user(message: Message, self_id: str) -> bool:
        """True if the message mentions everyone or lists self_id among its mentions"""
        return message.mention_everyone or self_id in message.mention_ids

    @staticmethod
    def is_relevant(message: Message, self_id: str) -> bool:
        """
        Decide whether a created message should be captured.

        A message written by the current user is never relevant, even when it
        mentions them. Broad mentions count without an explicit mention entry.

        Args:
            message: Parsed MESSAGE_CREATE payload
            self_id: Id of the logged in user

        Returns:
            True if the message must be kept as a pending mention
        """
        if message.author is None or message.author.id == self_id:
            return False
        return MentionDetector.mentions_user(message, self_id)

    @staticmethod
    def is_suppressed(updated: Message, self_id: str) -> bool:
        """
        Decide whether an edit of a captured message is an ordinary edit.

        Only the mention part of the relevance rule is checked: captured
        messages are never self-authored, and update payloads may omit the
        author.

        Returns:
            True if the edit still mentions the user and must not be reported
        """
        return MentionDetector.mentions_user(updated, self_id)
