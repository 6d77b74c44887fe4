# -*- coding: utf-8 -*-
import asyncio
import json

import pytest

from ragdocs.ingestion.embeddings_store import EmbeddingsStore, StoreCache, load_embeddings, save_embeddings
from conftest import embedded, make_store


def test_save_writes_expected_json(tmp_path):
    path = tmp_path / "out" / "embeddings.json"
    save_embeddings(make_store([embedded("p-a", [0.1, 0.2, 0.3], content="hello")]), path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"model", "dimensions", "generatedAt", "chunks"}
    assert data["dimensions"] == 3
    assert data["chunks"][0] == {
        "id": "p-a",
        "project": "Proj",
        "file": "doc.md",
        "section": "Section",
        "content": "hello",
        "embedding": [0.1, 0.2, 0.3],
    }
    assert not (tmp_path / "out" / "embeddings.json.tmp").exists()


def test_save_stamps_missing_timestamp(tmp_path):
    store = EmbeddingsStore(model="m", dimensions=3, generated_at="")
    save_embeddings(store, tmp_path / "e.json")
    stamped = json.loads((tmp_path / "e.json").read_text())["generatedAt"]
    assert stamped.endswith("Z") and "T" in stamped


def test_load_reads_what_save_wrote(write_store):
    path = write_store([embedded("p-a", [1, 0, 0]), embedded("p-b", [0, 1, 0], project="Other")])
    store = load_embeddings(path)
    assert [c.id for c in store.chunks] == ["p-a", "p-b"]
    assert store.chunks[1].project == "Other"
    assert store.matrix().shape == (2, 3)


def test_missing_file_is_hard_failure(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_embeddings(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_embeddings(path)


def test_missing_keys(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"model": "m", "chunks": []}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_embeddings(path)


def test_dimension_mismatch(tmp_path):
    path = tmp_path / "bad.json"
    payload = make_store([embedded("p-a", [1, 0])], dimensions=3).to_dict()
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(ValueError):
        load_embeddings(path)


def test_empty_store_matrix():
    assert make_store([], dimensions=384).matrix().shape == (0, 384)


@pytest.mark.asyncio
async def test_cache_loads_once(write_store, monkeypatch):
    path = write_store([embedded("p-a", [1, 0, 0])])
    cache = StoreCache(path)

    first = await cache.get()
    path.unlink()
    second = await cache.get()
    assert first is second


@pytest.mark.asyncio
async def test_cache_concurrent_first_use_shares_one_load(write_store, monkeypatch):
    import ragdocs.ingestion.embeddings_store as mod

    path = write_store([embedded("p-a", [1, 0, 0])])
    calls = []
    real = mod.load_embeddings

    def counting(p):
        calls.append(p)
        return real(p)

    monkeypatch.setattr(mod, "load_embeddings", counting)
    cache = StoreCache(path)
    stores = await asyncio.gather(*(cache.get() for _ in range(5)))
    assert len(calls) == 1
    assert all(s is stores[0] for s in stores)


@pytest.mark.asyncio
async def test_cache_does_not_remember_failures(tmp_path, write_store):
    cache = StoreCache(tmp_path / "rag" / "embeddings.json")
    with pytest.raises(FileNotFoundError):
        await cache.get()

    write_store([embedded("p-a", [1, 0, 0])])
    store = await cache.get()
    assert len(store.chunks) == 1
