import asyncio
import json

import httpx
import pytest

from portal.client import (
    GlobalSearchClient, LocalStorage, SearchDebouncer, SearchHistory, format_result,
)
from portal.client.search import HISTORY_KEY


@pytest.fixture
def make_client(tmp_path, make_api):
    def factory(handler):
        api = make_api(handler, token="t0k", storage_dir=tmp_path)
        return GlobalSearchClient(api, SearchHistory(LocalStorage(tmp_path)))
    return factory


def results_handler(requests):
    def handler(request):
        body = json.loads(request.content)
        requests.append((request.url.path, body, request.headers.get("authorization")))
        if request.url.path == "/api/search/suggestions":
            return httpx.Response(200, json={"suggestions": ["Hospital Italiano", "hospital general"]})
        return httpx.Response(200, json={"results": [{"id": "1", "type": "hospital", "title": body["query"], "score": 90}]})
    return handler


def failing_handler(request):
    return httpx.Response(500, json={"ok": False, "error": {"code": "server_error", "message": "Error interno del servidor"}})


def unreachable_handler(request):
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def history(tmp_path):
    return SearchHistory(LocalStorage(tmp_path))


def test_history_is_capped_and_most_recent_first(history):
    for i in range(11):
        history.push(f"query {i}")
    assert len(history.items()) == 10
    assert history.items()[0] == "query 10"
    assert "query 0" not in history.items()

    history.push("query 5")
    assert len(history.items()) == 10
    assert history.items()[0] == "query 5"
    assert history.items().count("query 5") == 1


def test_history_persists_and_clears(tmp_path, history):
    history.push("hospital")
    history.push("epic")
    reloaded = SearchHistory(LocalStorage(tmp_path))
    assert reloaded.load() == ["epic", "hospital"]

    reloaded.clear()
    assert reloaded.items() == []
    assert LocalStorage(tmp_path).get(HISTORY_KEY) is None


def test_history_ignores_malformed_storage(tmp_path):
    LocalStorage(tmp_path).set(HISTORY_KEY, {"not": "a list"})
    assert SearchHistory(LocalStorage(tmp_path)).load() == []


def test_short_queries_never_hit_the_network(tmp_path, make_client):
    requests = []
    client = make_client(results_handler(requests))
    assert asyncio.run(client.search("a")) == []
    assert asyncio.run(client.search("")) == []
    assert asyncio.run(client.search("  b ")) == []
    assert requests == []


def test_search_sends_query_and_records_history(tmp_path, make_client):
    requests = []
    client = make_client(results_handler(requests))
    results = asyncio.run(client.search(" hospital ", {"types": ["hospital"]}, 5))
    assert results[0]["title"] == "hospital"
    path, body, auth = requests[0]
    assert path == "/api/search/global"
    assert body == {"query": "hospital", "filters": {"types": ["hospital"]}, "limit": 5}
    assert auth == "Token t0k"
    assert client.history.items() == ["hospital"]


def test_failed_search_returns_empty_and_keeps_history(tmp_path, make_client):
    client = make_client(failing_handler)
    assert asyncio.run(client.search("hospital")) == []
    assert client.history.items() == []


def test_typed_helpers_set_filters(tmp_path, make_client):
    requests = []
    client = make_client(results_handler(requests))
    asyncio.run(client.search_projects("epic"))
    asyncio.run(client.search_hospitals("hospital", project_id="3"))
    asyncio.run(client.search_coordinators("maria"))
    filters = [body["filters"] for _, body, _ in requests]
    assert filters == [
        {"types": ["project"]},
        {"types": ["hospital"], "projects": ["3"]},
        {"types": ["coordinator"]},
    ]
    assert all(body["limit"] == 10 for _, body, _ in requests)


def test_empty_query_suggests_recent_history(tmp_path, make_client):
    requests = []
    client = make_client(results_handler(requests))
    for i in range(7):
        client.history.push(f"q{i}")
    assert asyncio.run(client.get_suggestions("")) == ["q6", "q5", "q4", "q3", "q2"]
    assert requests == []


def test_suggestions_put_server_first_and_dedupe(tmp_path, make_client):
    requests = []
    client = make_client(results_handler(requests))
    for q in ["hospital general", "hospital de clínicas", "epic", "hospital norte"]:
        client.history.push(q)
    suggestions = asyncio.run(client.get_suggestions("hospital"))
    assert suggestions == ["Hospital Italiano", "hospital general", "hospital norte", "hospital de clínicas"]
    assert requests[0][1] == {"query": "hospital"}


def test_suggestions_are_capped(tmp_path, make_client):
    client = make_client(results_handler([]))
    for i in range(10):
        client.history.push(f"hospital {i}")
    assert len(asyncio.run(client.get_suggestions("hosp"))) == 8


@pytest.mark.parametrize("handler", [failing_handler, unreachable_handler])
def test_suggestions_fall_back_to_history(tmp_path, handler, make_client):
    client = make_client(handler)
    for i in range(7):
        client.history.push(f"hospital {i}")
    client.history.push("epic")
    suggestions = asyncio.run(client.get_suggestions("hosp"))
    assert suggestions == ["hospital 6", "hospital 5", "hospital 4", "hospital 3", "hospital 2"]


def test_session_lifecycle(tmp_path, make_client):
    LocalStorage(tmp_path).set(HISTORY_KEY, ["epic"])
    client = make_client(results_handler([]))
    client.load()
    assert client.history.items() == ["epic"]
    client.close()
    assert client.history.items() == []
    assert LocalStorage(tmp_path).get(HISTORY_KEY) == ["epic"]


def test_debouncer_coalesces_keystrokes(tmp_path, make_client):
    requests = []
    client = make_client(results_handler(requests))

    async def run():
        debouncer = SearchDebouncer(client, delay=0.01)
        debouncer.submit("ho")
        debouncer.submit("hosp")
        return await debouncer.submit("hospital")

    results = asyncio.run(run())
    assert [body["query"] for _, body, _ in requests] == ["hospital"]
    assert results[0]["title"] == "hospital"


def test_stale_responses_are_discarded(tmp_path, make_client):
    applied = []

    async def run():
        release = asyncio.Event()

        async def handler(request):
            query = json.loads(request.content)["query"]
            if query == "hospital":
                await release.wait()
            return httpx.Response(200, json={"results": [{"id": query, "score": 90}]})

        client = make_client(handler)
        debouncer = SearchDebouncer(client, on_results=applied.append)
        slow = asyncio.ensure_future(debouncer.issue("hospital"))
        await asyncio.sleep(0)
        fast = await debouncer.issue("hospital italiano")
        release.set()
        return await slow, fast, debouncer

    stale, fast, debouncer = asyncio.run(run())
    assert stale is None
    assert fast == [{"id": "hospital italiano", "score": 90}]
    assert debouncer.results == fast
    assert applied == [fast]
    assert debouncer.issued == 2


def test_format_result_prefers_server_highlight():
    formatted = format_result({"type": "alert", "title": "Reclutamiento bajo",
                               "highlighted": {"title": "Reclutamiento <mark>bajo</mark>"}}, "bajo")
    assert formatted == {"icon": "⚠️", "typeLabel": "Alerta", "highlight": "Reclutamiento <mark>bajo</mark>"}
    formatted = format_result({"type": "hospital", "title": "Hospital Italiano"}, "italiano")
    assert formatted["highlight"] == "Hospital <mark>Italiano</mark>"
    assert format_result({"type": "otro", "title": "x"})["typeLabel"] == "Elemento"
