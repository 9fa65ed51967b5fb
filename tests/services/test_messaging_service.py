from unittest.mock import patch

import pytest

from cupid.config import Settings
from cupid.utils.errors import ForbiddenError, NotFoundError, ValidationError


class TestMessagingGate:
    def test_matched_users_can_message(self, matched):
        assert matched.gate.can_message("1", "2") is True
        assert matched.gate.can_message("2", "1") is True

    def test_one_sided_like_cannot_message(self, services):
        services.interactions.like("1", "2")
        assert services.gate.can_message("1", "2") is False
        assert services.gate.can_message("2", "1") is False

    def test_strangers_cannot_message(self, services):
        assert services.gate.can_message("1", "2") is False

    def test_gate_ignores_blocks(self, matched):
        matched.moderation.block("1", "2")
        assert matched.gate.can_message("1", "2") is True


class TestSendMessage:
    def test_send_to_match(self, matched):
        message = matched.messaging.send_message("1", "2", "hello there")

        assert message.id is not None
        assert message.sender_id == "1"
        assert message.receiver_id == "2"
        assert message.content == "hello there"
        assert message.is_read is False
        assert message.created_at is not None

    def test_send_without_match_forbidden(self, services):
        with pytest.raises(ForbiddenError, match="matched with"):
            services.messaging.send_message("1", "2", "hi")

    def test_send_after_unmatch_forbidden(self, matched):
        matched.messaging.send_message("1", "2", "before")
        matched.matches.unmatch("2", "1")

        with pytest.raises(ForbiddenError):
            matched.messaging.send_message("1", "2", "after")

    def test_empty_content_rejected(self, matched):
        with pytest.raises(ValidationError):
            matched.messaging.send_message("1", "2", "   ")

    def test_long_content_rejected(self, matched):
        with patch("cupid.services.messaging_service.get_settings") as mock_settings:
            mock_settings.return_value = Settings(_env_file=None, MAX_MESSAGE_LENGTH=5)
            with pytest.raises(ValidationError) as exc_info:
                matched.messaging.send_message("1", "2", "too long")

        assert exc_info.value.details["max_length"] == 5

    def test_unknown_receiver(self, matched):
        with pytest.raises(NotFoundError):
            matched.messaging.send_message("1", "99", "hi")


class TestConversation:
    def test_newest_first(self, matched):
        matched.messaging.send_message("1", "2", "first")
        matched.messaging.send_message("2", "1", "second")
        matched.messaging.send_message("1", "2", "third")

        contents = [m.content for m in matched.messaging.get_conversation("2", "1")]

        assert contents == ["third", "second", "first"]

    def test_pagination(self, matched):
        for i in range(5):
            matched.messaging.send_message("1", "2", f"m{i}")

        page = matched.messaging.get_conversation("1", "2", limit=2, offset=1)

        assert [m.content for m in page] == ["m3", "m2"]

    def test_reading_marks_incoming_as_read(self, matched):
        matched.messaging.send_message("1", "2", "ping")
        matched.messaging.send_message("2", "1", "pong")

        seen_by_2 = matched.messaging.get_conversation("2", "1")
        by_content = {m.content: m for m in seen_by_2}

        assert by_content["ping"].is_read is True
        assert by_content["ping"].read_at is not None
        # Own outgoing message stays unread until the partner opens the thread
        assert by_content["pong"].is_read is False

    def test_view_without_match_forbidden(self, services):
        with pytest.raises(ForbiddenError, match="view messages"):
            services.messaging.get_conversation("1", "2")

    def test_history_hidden_after_unmatch(self, matched):
        matched.messaging.send_message("1", "2", "hello")
        matched.matches.unmatch("1", "2")

        with pytest.raises(ForbiddenError):
            matched.messaging.get_conversation("1", "2")


class TestListConversations:
    def test_summaries(self, matched):
        matched.interactions.like("1", "3")
        matched.interactions.like("3", "1")
        matched.messaging.send_message("2", "1", "from two")
        matched.messaging.send_message("2", "1", "again from two")
        matched.messaging.send_message("1", "3", "to three")

        summaries = matched.messaging.list_conversations("1")

        assert [s.partner_id for s in summaries] == ["3", "2"]
        by_partner = {s.partner_id: s for s in summaries}
        assert by_partner["2"].unread_count == 2
        assert by_partner["2"].last_message.content == "again from two"
        assert by_partner["3"].unread_count == 0

    def test_unread_count_drops_after_reading(self, matched):
        matched.messaging.send_message("2", "1", "hi")
        matched.messaging.get_conversation("1", "2")

        assert matched.messaging.list_conversations("1")[0].unread_count == 0

    def test_history_listed_after_unmatch(self, matched):
        matched.messaging.send_message("1", "2", "hello")
        matched.matches.unmatch("1", "2")

        assert [s.partner_id for s in matched.messaging.list_conversations("1")] == ["2"]

    def test_no_conversations(self, services):
        assert services.messaging.list_conversations("1") == []
