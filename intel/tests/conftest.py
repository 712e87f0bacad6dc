# intel/tests/conftest.py
import pytest

from intel.models import NewsItem


class FakeFeed:
    """Feed em memória; registra as queries recebidas."""

    def __init__(self, items=None, name="fake", error=None):
        self.items = list(items or [])
        self.name = name
        self.error = error
        self.queries = []

    async def fetch(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.items)


class FakeLLM:
    """Devolve as respostas na ordem; exceções na lista são levantadas."""

    is_configured = True

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    async def generate(self, prompt, tier=None):
        self.calls.append((prompt, tier))
        if not self.responses:
            raise AssertionError("unexpected model call")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def transcribe_images(self, images, prompt):
        return await self.generate(prompt)


def _mk_item(title, url, published_at="", source="UnitTest"):
    return NewsItem(title=title, url=url, published_at=published_at, source=source)


@pytest.fixture()
def mk_item():
    return _mk_item


@pytest.fixture()
def fake_feed():
    return FakeFeed


@pytest.fixture()
def fake_llm():
    return FakeLLM


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def fake_sleep(sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)
    return _sleep


@pytest.fixture()
def fake_orchestrator():
    # substituído por cada teste via atributos
    class _Orchestrator:
        analyze_impl = None
        inbound_impl = None

        async def analyze(self, request):
            return await self.analyze_impl(request)

        async def analyze_inbound_lead(self, request):
            return await self.inbound_impl(request)

    return _Orchestrator()


@pytest.fixture()
def app(monkeypatch, fake_orchestrator):
    # Sem rede: o orquestrador do módulo é trocado pelo fake
    from intel.api import main as api_main

    monkeypatch.setattr(api_main, "orchestrator", fake_orchestrator, raising=True)
    return api_main.app


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
