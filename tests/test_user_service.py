# tests/test_user_service.py
import json

import pytest

from dbkompare.core.errors import NotFoundError, ValidationError
from dbkompare.services.user_service import UserService, social_provider
from tests.conftest import USER_ID
from tests.fakes import EmailRecorder


@pytest.fixture
def configured(settings):
    settings.COGNITO_USER_POOL_ID = "eu-west-1_pool"
    return settings


@pytest.fixture
def service(store, directory, configured, emails, clock):
    return UserService(store, directory, configured, emails, clock)


def confirm_event(**attributes):
    return {
        "triggerSource": "PostConfirmation_ConfirmSignUp",
        "userPoolId": "eu-west-1_pool",
        "userName": "jdoe",
        "request": {"userAttributes": {"sub": "sub-123", "email": "new@example.com", "name": "New User",
                                       **attributes}},
    }


def test_social_provider_reads_first_identity():
    identities = json.dumps([{"providerName": "Google", "userId": "1"}])
    assert social_provider({"identities": identities}) == "Google"
    assert social_provider({"identities": "not json"}) is None
    assert social_provider({}) is None


class TestPostConfirmation:

    def test_provisions_vendor(self, service, store, directory, emails, settings):
        event = confirm_event()

        assert service.handle_post_confirmation(event) is event

        [user] = store.items(store.tables.users)
        assert user["cognitoId"] == "sub-123"
        assert user["role"] == "VENDOR"
        assert user["status"] == "ACTIVE"
        assert user["freeQuizCredits"] == 2
        assert user["certificateCredits"] == 0
        assert user["loggedAt"] == "2026-10-19T14:05:03.000Z"
        assert directory.groups == [("jdoe", "VENDORS")]
        assert directory.attributes["jdoe"] == {"custom:userId": user["id"], "custom:role": "VENDOR"}
        assert [e["to"] for e in emails.sent] == [settings.ADMIN_EMAIL]
        assert "New User" in emails.sent[0]["html"]

    def test_role_attribute_selects_group(self, service, directory):
        service.handle_post_confirmation(confirm_event(**{"custom:role": "ADMIN"}))
        assert directory.groups == [("jdoe", "ADMINS")]

    def test_google_sign_up_is_always_vendor(self, service, store, directory):
        identities = json.dumps([{"providerName": "Google"}])
        service.handle_post_confirmation(confirm_event(identities=identities, **{"custom:role": "ADMIN"}))

        [user] = store.items(store.tables.users)
        assert user["role"] == "VENDOR"
        assert directory.attributes["jdoe"]["email_verified"] == "true"
        assert directory.groups == [("jdoe", "VENDORS")]

    def test_other_triggers_are_ignored(self, service, store, directory):
        event = {**confirm_event(), "triggerSource": "PostConfirmation_ConfirmForgotPassword"}

        assert service.handle_post_confirmation(event) is event
        assert store.items(store.tables.users) == []
        assert directory.groups == []

    def test_failed_admin_email_does_not_fail_sign_up(self, store, directory, configured, clock):
        service = UserService(store, directory, configured, EmailRecorder(result=False), clock)
        service.handle_post_confirmation(confirm_event())
        assert len(store.items(store.tables.users)) == 1

    def test_name_is_escaped_in_admin_email(self, service, emails):
        service.handle_post_confirmation(confirm_event(name="<b>Eve</b>"))
        assert "&lt;b&gt;Eve&lt;/b&gt;" in emails.sent[0]["html"]


class TestCreateAdminUser:

    def test_creates_cognito_and_table_user(self, service, store, directory):
        result = service.create_admin_user("Root", "root@example.com", "s3cretPass")

        [created] = directory.created
        assert created["username"] == "root@example.com"
        assert created["custom:role"] == "ADMIN"
        assert created["custom:userId"] == result["id"]
        assert directory.passwords == {"root@example.com": "s3cretPass"}
        assert directory.groups == [("root@example.com", "ADMINS")]

        stored = store.get_item(store.tables.users, {"id": result["id"]})
        assert stored["role"] == "ADMIN"
        assert stored["cognitoId"] == "cognito-1"
        assert stored["name"] == "Root"

    @pytest.mark.parametrize("args", [(None, "a@b.c", "password1"), ("A", "", "password1"),
                                      ("A", "a@b.c", None)])
    def test_requires_all_fields(self, service, directory, args):
        with pytest.raises(ValidationError):
            service.create_admin_user(*args)
        assert directory.created == []

    def test_requires_user_pool(self, store, directory, settings, emails, clock):
        service = UserService(store, directory, settings, emails, clock)
        with pytest.raises(ValidationError):
            service.create_admin_user("Root", "root@example.com", "s3cretPass")


class TestGetUserDetails:

    def test_defaults_and_metrics(self, service, store, seeded_user):
        store.seed(store.tables.achievements,
                   {"userId": USER_ID, "sortKey": "COUNTER#XP", "value": 150},
                   {"userId": USER_ID, "sortKey": "COUNTER#STREAK", "value": 4})

        details = service.get_user_details(USER_ID)

        assert details["email"] == "jane@example.com"
        assert details["freeQuizCredits"] == 2
        assert details["unlockedQuizIds"] == []
        assert details["metrics"] == {"streak": 4, "xp": 150, "gems": 0}

    def test_keeps_stored_balance(self, service, store):
        store.seed(store.tables.users, {"id": "u-0", "freeQuizCredits": 0, "unlockedQuizIds": ["quiz-1"]})

        details = service.get_user_details("u-0")

        assert details["freeQuizCredits"] == 0
        assert details["unlockedQuizIds"] == ["quiz-1"]

    def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            service.get_user_details("nobody")

    def test_requires_id(self, service):
        with pytest.raises(ValidationError):
            service.get_user_details("")
