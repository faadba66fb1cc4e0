import random

import fitz
import pytest
from fastapi.testclient import TestClient

from talentai.core.errors import AIUnavailable
from talentai.core.llm import AIGateway, TextProvider
from talentai.db.repository import InMemoryStore, SqlStore
from talentai.db.session import ensure_tables, make_engine, make_session_factory
from talentai.pipeline.orchestrator import CandidatePipeline, PipelineRegistry


class FakeProvider(TextProvider):
    """Returns canned replies in order (the last one repeats), or raises `error`."""

    def __init__(self, name, replies=None, error=None):
        self.name = name
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    def generate(self, prompt, system_prompt=""):
        self.calls.append((prompt, system_prompt))
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0] if self.replies else ""


def failing_gateway():
    return AIGateway({"gemini": FakeProvider("gemini", error=AIUnavailable("gemini down"))})


def canned_gateway(*replies):
    return AIGateway({"gemini": FakeProvider("gemini", replies=list(replies))})


def pdf_bytes(text="Hello resume", password=None):
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    if password:
        data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner-" + password, user_pw=password)
    else:
        data = doc.tobytes()
    doc.close()
    return data


PROFILE = {"name": "Ada Lovelace", "email": "Ada@Example.com", "position": "Software Engineer"}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sql_store():
    engine = make_engine("sqlite://")
    ensure_tables(engine)
    yield SqlStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def make_pipeline(store):
    def _make(gateway=None, **kwargs):
        kwargs.setdefault("rng", random.Random(7))
        return CandidatePipeline(store, gateway if gateway is not None else failing_gateway(), **kwargs)

    return _make


@pytest.fixture
def started(make_pipeline):
    pipeline = make_pipeline()
    pipeline.start(PROFILE)
    return pipeline


@pytest.fixture
def client(store):
    from talentai.main import Services, app, get_services

    gateway = failing_gateway()
    services = Services(store, PipelineRegistry(store, gateway), gateway)
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
