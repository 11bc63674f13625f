# tests/test_lambda_handler.py
import json

import pytest

from dbkompare import lambda_handler
from dbkompare.core.errors import ConflictError


def api_gateway_event(path, method="GET"):
    return {
        "resource": "/{proxy+}",
        "path": path,
        "httpMethod": method,
        "headers": {"Host": "api.dbkompare.test", "Accept": "application/json"},
        "multiValueHeaders": {"Host": ["api.dbkompare.test"], "Accept": ["application/json"]},
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
        "pathParameters": {"proxy": path.lstrip("/")},
        "stageVariables": None,
        "requestContext": {
            "resourcePath": "/{proxy+}",
            "httpMethod": method,
            "path": f"/prod{path}",
            "stage": "prod",
            "requestId": "c6af9ac6-7b61-11e6-9a41-93e8deadbeef",
            "identity": {"sourceIp": "127.0.0.1", "userAgent": "pytest"},
        },
        "body": None,
        "isBase64Encoded": False,
    }


def test_health_through_api_gateway():
    response = lambda_handler.handler(api_gateway_event("/api/v1/health"), None)

    assert response["statusCode"] == 200
    assert json.loads(response["body"])["message"] == "OK"


def test_handler_failure_still_returns_envelope(monkeypatch):
    def broken(event, context):
        raise RuntimeError("bad event")

    monkeypatch.setattr(lambda_handler, "asgi_handler", broken)
    response = lambda_handler.handler({}, None)

    assert response["statusCode"] == 500
    assert json.loads(response["body"]) == {"message": "Internal server error", "data": None}
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"


def cognito_event(trigger):
    return {
        "version": "1",
        "triggerSource": trigger,
        "userPoolId": "eu-west-1_pool",
        "userName": "jdoe",
        "request": {"userAttributes": {"sub": "sub-123", "email": "new@example.com", "name": "New User"}},
        "response": {},
    }


def test_post_confirmation_trigger_provisions_user(monkeypatch, services, store, directory):
    monkeypatch.setattr(lambda_handler.app.state, "services", services)
    event = cognito_event("PostConfirmation_ConfirmSignUp")

    assert lambda_handler.handler(event, None) is event
    [user] = store.items(store.tables.users)
    assert user["email"] == "new@example.com"
    assert directory.groups == [("jdoe", "VENDORS")]


def test_other_cognito_triggers_pass_through(monkeypatch, services, store):
    monkeypatch.setattr(lambda_handler.app.state, "services", services)
    event = cognito_event("PostConfirmation_ConfirmForgotPassword")

    assert lambda_handler.handler(event, None) is event
    assert store.items(store.tables.users) == []


def test_trigger_errors_reach_cognito(monkeypatch, services, store):
    monkeypatch.setattr(lambda_handler.app.state, "services", services)
    store.seed(store.tables.users, {"id": "taken"})
    monkeypatch.setattr("dbkompare.services.user_service.uuid.uuid4", lambda: "taken")

    with pytest.raises(ConflictError, match="User already exists"):
        lambda_handler.handler(cognito_event("PostConfirmation_ConfirmSignUp"), None)
