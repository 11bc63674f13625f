# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from dbkompare.core.config import Settings
from dbkompare.core.deps import Services
from dbkompare.main import create_app
from dbkompare.services.text_generation_service import TextGenerationService
from tests.fakes import (
    EmailRecorder,
    FakeDirectory,
    FakeOpenAIClient,
    FakeStorage,
    FakeStripeGateway,
    FrozenClock,
    InMemoryStore,
    make_template_pdf,
)

USER_ID = "user-1"
QUIZ_ID = "quiz-1"


@pytest.fixture
def settings():
    return Settings(_env_file=None, BUCKET_NAME="test-bucket", ADMIN_EMAIL="admin@dbkompare.test")


@pytest.fixture
def store(settings):
    return InMemoryStore(settings)


@pytest.fixture
def storage(settings):
    fake = FakeStorage()
    fake.objects[(settings.BUCKET_NAME, settings.CERTIFICATE_TEMPLATE_KEY)] = make_template_pdf()
    return fake


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def gateway():
    return FakeStripeGateway()


@pytest.fixture
def openai_client():
    return FakeOpenAIClient('{"ai_capabilities": "Yes", "web_access": "Maybe", "price": ""}')


@pytest.fixture
def emails():
    return EmailRecorder()


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def services(settings, store, storage, gateway, openai_client, emails, clock, directory):
    return Services(
        settings=settings,
        store=store,
        storage=storage,
        payments=gateway,
        text_generation=TextGenerationService("test-key", client=openai_client),
        send_email=emails,
        clock=clock,
        directory=directory,
    )


@pytest.fixture
def client(settings, services):
    app = create_app(settings, services)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def admin_headers():
    token = jwt.encode({"sub": "admin-1", "cognito:groups": ["ADMINS"]}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def vendor_headers():
    token = jwt.encode({"sub": "vendor-1", "cognito:groups": ["VENDORS"]}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def make_question(question_id, correct, wrong=("x",), points=None):
    options = [{"id": opt, "text": f"Option {opt}", "isCorrect": True} for opt in correct]
    options += [{"id": opt, "text": f"Option {opt}", "isCorrect": False} for opt in wrong]
    question = {"id": question_id, "question": f"Question {question_id}", "options": options}
    if points is not None:
        question["points"] = points
    return question


@pytest.fixture
def seeded_quiz(store):
    """Quiz de 4 preguntas (una de respuesta múltiple) con 75% para aprobar."""
    questions = [
        make_question("q1", ["a"], ["b", "c"]),
        make_question("q2", ["a"], ["b"], points=2),
        make_question("q3", ["a", "b"], ["c"]),
        make_question("q4", ["c"], ["a"]),
    ]
    store.seed(store.tables.questions, *questions)
    store.seed(store.tables.quizzes, {
        "id": QUIZ_ID,
        "name": "PostgreSQL Fundamentals",
        "category": "Relational",
        "difficulty": "Beginner",
        "status": "ACTIVE",
        "questionIds": ["q1", "q2", "q3", "q4"],
        "passingPerc": 75,
    })
    return QUIZ_ID


@pytest.fixture
def seeded_user(store):
    store.seed(store.tables.users, {
        "id": USER_ID,
        "email": "jane@example.com",
        "name": "Jane Doe",
        "role": "VENDOR",
        "certificateCredits": 3,
    })
    return USER_ID
