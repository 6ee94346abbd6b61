import asyncio
import json

import httpx
import pytest

from hocr_api.core.config import HighlightConfig
from hocr_api.core.errors import CollaboratorUnavailable
from hocr_api.core.providers import get_repository, get_search, reset_providers
from hocr_api.core.providers.layer import WordLayer, highlighted_terms
from hocr_api.core.providers.local import FilesystemRepository
from hocr_api.core.providers.remote import HttpRepository
from hocr_api.core.providers.solr import SolrSearch

LAYER = {
    "page": {"width": 2480, "height": 3508},
    "words": [
        {"id": "word_1_1", "text": "The", "class": "ocrx_word", "bbox": [10, 20, 60, 44]},
        {"id": "word_1_2", "text": "cat,", "class": "ocrx_word", "bbox": [70, 20, 110, 44]},
        {"id": "word_1_3", "text": "sat", "class": "ocrx_word", "bbox": {"left": 120, "top": 20, "right": 160, "bottom": 44}},
        {"id": "word_2_1", "text": "Cat", "class": "ocrx_word", "bbox": [10, 60, 50, 84]},
    ],
}


def test_highlighted_terms_prefers_marked_terms():
    assert highlighted_terms("the {{{Cat}}} sat", "{{{", "}}}") == {"cat"}
    assert highlighted_terms("the cat.", "{{{", "}}}") == {"the", "cat"}
    assert highlighted_terms("<em>big cat</em> sat", "<em>", "</em>") == {"big", "cat"}


def test_word_layer_matches_case_folded_words_in_order():
    layer = WordLayer.from_dict(LAYER)
    matches = layer.search("the {{{cat}}} sat", {"hl.simple.pre": "{{{", "hl.simple.post": "}}}"})

    assert [m.word_id for m in matches] == ["word_1_2", "word_2_1"]
    assert matches[0].bbox.left == 70
    assert matches[0].word_class == "ocrx_word"
    assert layer.page_dimensions().width == 2480


def test_word_layer_uses_default_markers():
    layer = WordLayer.from_dict(LAYER)
    assert [m.word_id for m in layer.search("{{{sat}}}", {})] == ["word_1_3"]
    assert layer.search("   ", {}) == []


def test_word_layer_accepts_integer_ids():
    layer = WordLayer.from_dict({
        "page": {"width": 10, "height": 10},
        "words": [{"id": 7, "text": "cat", "bbox": [0, 0, 1, 1]}],
    })
    assert [m.word_id for m in layer.search("cat", {})] == ["7"]


MALFORMED_LAYERS = [
    {"page": {"width": 10, "height": 10}, "words": [{"text": "cat", "bbox": [0, 0, 1, 1]}]},
    {"page": {"width": 10, "height": 10}, "words": [{"id": "w1", "text": None, "bbox": [0, 0, 1, 1]}]},
    {"page": {"width": 10, "height": 10}, "words": [{"id": "w1", "text": "cat", "bbox": [0, 0, 1]}]},
    {"page": {"width": 10, "height": 10}, "words": "cat"},
    {"words": [{"id": "w1", "text": "cat", "bbox": [0, 0, 1, 1]}]},
    ["not", "a", "layer"],
]


@pytest.mark.parametrize("data", MALFORMED_LAYERS)
def test_filesystem_repository_rejects_malformed_layer(tmp_path, data):
    (tmp_path / "doc").mkdir()
    (tmp_path / "doc" / "hocr.json").write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(CollaboratorUnavailable) as exc_info:
        asyncio.run(FilesystemRepository(base_dir=str(tmp_path)).load("doc"))
    assert exc_info.value.collaborator == "repository"


def test_http_repository_rejects_malformed_layer():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/datastreams/HOCR/content"):
            return httpx.Response(200, json={"words": [{"text": "cat", "bbox": [0, 0, 1, 1]}]})
        return httpx.Response(200, json={"pid": "doc"})

    repository = HttpRepository(base_url="http://repo.test/fedora", transport=httpx.MockTransport(handler))
    with pytest.raises(CollaboratorUnavailable):
        asyncio.run(repository.load("doc"))


def test_filesystem_repository(tmp_path):
    (tmp_path / "islandora%3A1").mkdir()
    (tmp_path / "islandora%3A1" / "hocr.json").write_text(json.dumps(LAYER), encoding="utf-8")
    (tmp_path / "islandora%3A2").mkdir()
    repository = FilesystemRepository(base_dir=str(tmp_path))

    with_layer = asyncio.run(repository.load("islandora:1"))
    without_layer = asyncio.run(repository.load("islandora:2"))
    missing = asyncio.run(repository.load("islandora:3"))

    assert with_layer.layer is not None
    assert with_layer.layer.page_dimensions().height == 3508
    assert without_layer.document_id == "islandora:2"
    assert without_layer.layer is None
    assert missing is None


def test_filesystem_repository_invalid_layer(tmp_path):
    (tmp_path / "doc").mkdir()
    (tmp_path / "doc" / "hocr.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(CollaboratorUnavailable):
        asyncio.run(FilesystemRepository(base_dir=str(tmp_path)).load("doc"))


def _repository_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/fedora/objects/islandora:1":
        return httpx.Response(200, json={"pid": "islandora:1"})
    if path == "/fedora/objects/islandora:1/datastreams/HOCR/content":
        return httpx.Response(200, json=LAYER)
    if path == "/fedora/objects/islandora:2":
        return httpx.Response(200, json={"pid": "islandora:2"})
    if path == "/fedora/objects/broken":
        return httpx.Response(500)
    return httpx.Response(404)


def test_http_repository():
    repository = HttpRepository(
        base_url="http://repo.test/fedora",
        transport=httpx.MockTransport(_repository_handler),
    )

    async def _load_all():
        try:
            return [await repository.load(pid) for pid in ("islandora:1", "islandora:2", "islandora:3")]
        finally:
            await repository.close()

    with_layer, without_layer, missing = asyncio.run(_load_all())

    assert [m.word_id for m in with_layer.layer.search("sat", {})] == ["word_1_3"]
    assert without_layer.layer is None
    assert missing is None


def test_http_repository_server_error():
    repository = HttpRepository(
        base_url="http://repo.test/fedora",
        transport=httpx.MockTransport(_repository_handler),
    )
    with pytest.raises(CollaboratorUnavailable) as exc_info:
        asyncio.run(repository.load("broken"))
    assert exc_info.value.collaborator == "repository"


def test_solr_search_sends_highlight_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={
            "responseHeader": {"params": {"q": "cat", "hl.simple.pre": "{{{"}},
            "response": {"numFound": 1, "docs": [{"PID": "islandora:1"}]},
            "highlighting": {"islandora:1": {"OCR_t": ["the {{{cat}}}"]}},
        })

    search = SolrSearch(base_url="http://solr.test/solr/core", transport=httpx.MockTransport(handler))
    response = asyncio.run(search.search("cat", HighlightConfig(rows=5)))

    assert seen["path"] == "/solr/core/select"
    assert seen["params"]["hl"] == "true"
    assert seen["params"]["hl.fl"] == "OCR_t"
    assert seen["params"]["rows"] == "5"
    assert seen["params"]["fl"] == "PID"
    assert response.num_found == 1
    assert response.highlighting == {"islandora:1": {"OCR_t": ["the {{{cat}}}"]}}
    assert response.params == {"q": "cat", "hl.simple.pre": "{{{"}


def test_solr_search_without_echoed_params_uses_request_params():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"response": {"numFound": 0, "docs": []}})

    search = SolrSearch(base_url="http://solr.test/solr/core", transport=httpx.MockTransport(handler))
    response = asyncio.run(search.search("cat", HighlightConfig()))

    assert response.highlighting == {}
    assert response.params["hl.simple.post"] == "}}}"


def test_solr_search_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    search = SolrSearch(base_url="http://solr.test/solr/core", transport=httpx.MockTransport(handler))
    with pytest.raises(CollaboratorUnavailable) as exc_info:
        asyncio.run(search.search("cat", HighlightConfig()))
    assert exc_info.value.collaborator == "search"


def test_factories_follow_mode(monkeypatch, tmp_path):
    monkeypatch.setenv("HOCR_MODE", "local")
    monkeypatch.setenv("LAYER_DIR", str(tmp_path))
    asyncio.run(reset_providers())
    repository = get_repository()
    assert isinstance(repository, FilesystemRepository)
    assert repository.base_dir == tmp_path
    assert get_repository() is repository
    assert isinstance(get_search(), SolrSearch)

    monkeypatch.setenv("HOCR_MODE", "remote")
    monkeypatch.setenv("REPOSITORY_URL", "http://repo.test/fedora/")
    asyncio.run(reset_providers())
    repository = get_repository()
    assert isinstance(repository, HttpRepository)
    assert repository.base_url == "http://repo.test/fedora"


def test_reset_providers_closes_http_clients(monkeypatch):
    monkeypatch.setenv("HOCR_MODE", "remote")
    asyncio.run(reset_providers())

    async def _open_then_reset():
        search = get_search()
        repository = get_repository()
        search_client = await search._get_client()
        repository_client = await repository._get_client()
        await reset_providers()
        return search, search_client, repository_client

    search, search_client, repository_client = asyncio.run(_open_then_reset())

    assert search_client.is_closed
    assert repository_client.is_closed
    assert get_search() is not search
