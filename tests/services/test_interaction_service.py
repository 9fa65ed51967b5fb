import pytest

from cupid.models.interaction import InteractionState
from cupid.models.notification import NotificationType
from cupid.services.container import build_services
from cupid.utils.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from tests.mocks.notifications import FailingNotificationDispatcher


def _state(services, actor_id, target_id):
    interaction = services.matches.get_interaction(actor_id, target_id)
    return interaction.state if interaction is not None else InteractionState.NONE


class TestRecordInteraction:
    def test_first_like_is_pending(self, services):
        result = services.interactions.like("1", "2")

        assert result.liked is True
        assert result.matched is False
        assert _state(services, "1", "2") == InteractionState.LIKED
        assert _state(services, "2", "1") == InteractionState.NONE

    def test_reciprocal_like_matches_both_rows(self, services):
        services.interactions.like("1", "2")
        result = services.interactions.like("2", "1")

        assert result.liked is True
        assert result.matched is True
        forward = services.matches.get_interaction("1", "2")
        reverse = services.matches.get_interaction("2", "1")
        assert forward.state == InteractionState.MATCHED
        assert reverse.state == InteractionState.MATCHED
        assert forward.matched_at is not None
        assert forward.matched_at == reverse.matched_at

    def test_dislike_then_like_never_matches(self, services):
        services.interactions.dislike("1", "2")
        result = services.interactions.like("2", "1")

        assert result.matched is False
        assert _state(services, "1", "2") == InteractionState.DISLIKED
        assert _state(services, "2", "1") == InteractionState.LIKED

    def test_like_then_dislike_never_matches(self, services):
        services.interactions.like("1", "2")
        result = services.interactions.dislike("2", "1")

        assert result.liked is False
        assert result.matched is False
        assert _state(services, "1", "2") == InteractionState.LIKED
        assert _state(services, "2", "1") == InteractionState.DISLIKED

    def test_duplicate_like_conflicts(self, services):
        services.interactions.like("1", "2")

        with pytest.raises(ConflictError, match="already interacted"):
            services.interactions.like("1", "2")

    def test_dislike_after_like_conflicts(self, services):
        services.interactions.like("1", "2")

        with pytest.raises(ConflictError):
            services.interactions.dislike("1", "2")
        assert _state(services, "1", "2") == InteractionState.LIKED

    def test_duplicate_after_match_conflicts(self, matched):
        with pytest.raises(ConflictError):
            matched.interactions.like("2", "1")

    def test_self_interaction_rejected(self, services):
        with pytest.raises(InvalidOperationError, match="yourself"):
            services.interactions.like("1", "1")
        assert services.matches.get_interaction("1", "1") is None

    def test_unknown_target(self, services):
        with pytest.raises(NotFoundError, match="Target user not found: 99"):
            services.interactions.like("1", "99")

    def test_unknown_actor(self, services):
        with pytest.raises(NotFoundError, match="User not found: 99"):
            services.interactions.dislike("99", "1")

    def test_interactions_are_per_pair(self, services):
        services.interactions.like("1", "2")
        services.interactions.like("1", "3")
        result = services.interactions.like("3", "1")

        assert result.matched is True
        assert _state(services, "1", "2") == InteractionState.LIKED


class TestNotifications:
    def test_like_notifies_target(self, services, dispatcher):
        services.interactions.like("1", "2")

        assert len(dispatcher.events) == 1
        event = dispatcher.events[0]
        assert event.type == NotificationType.LIKE
        assert event.recipient_id == "2"
        assert event.from_user_id == "1"

    def test_dislike_is_silent(self, services, dispatcher):
        services.interactions.dislike("1", "2")
        assert dispatcher.events == []

    def test_match_notifies_both_users(self, services, dispatcher):
        services.interactions.like("1", "2")
        dispatcher.clear()

        services.interactions.like("2", "1")

        match_events = dispatcher.of_type(NotificationType.MATCH)
        assert {(e.recipient_id, e.from_user_id) for e in match_events} == {("1", "2"), ("2", "1")}
        assert dispatcher.of_type(NotificationType.LIKE) == []

    def test_rejected_interaction_is_silent(self, services, dispatcher):
        with pytest.raises(NotFoundError):
            services.interactions.like("1", "99")
        assert dispatcher.events == []

    def test_dispatcher_failure_does_not_fail_match(self, db, services):
        failing = FailingNotificationDispatcher()
        container = build_services(db, failing)

        container.interactions.like("3", "4")
        result = container.interactions.like("4", "3")

        assert result.matched is True
        assert failing.calls == 3
        assert container.gate.can_message("3", "4") is True


class TestScenarios:
    def test_match_message_unmatch(self, services):
        assert services.interactions.like("1", "2").model_dump() == {"liked": True, "matched": False}
        assert services.interactions.like("2", "1").model_dump() == {"liked": True, "matched": True}

        services.messaging.send_message("1", "2", "hi")
        services.matches.unmatch("1", "2")

        with pytest.raises(ForbiddenError):
            services.messaging.send_message("1", "2", "hi again")

    def test_dislike_is_final(self, services):
        assert services.interactions.dislike("3", "4").model_dump() == {"liked": False, "matched": False}

        with pytest.raises(ConflictError):
            services.interactions.like("3", "4")
