# =============================================================================
# Unit Tests — VectorStore (lock, persistence, cancellation)
# =============================================================================
#
# Uses the bag-of-words FakeEmbedder from conftest and a tmp_path index.
# Each test drives its coroutine with asyncio.run.
# =============================================================================

import asyncio

import pytest

from screener.errors import InvalidParameterError, NoCorpusError, PersistenceError
from screener.services import persistence
from screener.services.index import ChunkDraft, ChunkMetadata
from screener.services.persistence import IndexStore
from screener.services.scoring import StatusLabel
from screener.services.vectorstore import VectorStore


def _run(coro):
    return asyncio.run(coro)


def _draft(text: str, doc: str = "doc-1", ordinal: int = 0) -> ChunkDraft:
    return ChunkDraft(
        text=text,
        source_document_id=doc,
        ordinal=ordinal,
        metadata=ChunkMetadata(status_label=StatusLabel.HIRED, role="backend"),
    )


@pytest.fixture
def store(index_path, embedder) -> VectorStore:
    return VectorStore(IndexStore(index_path), embedder)


class TestVectorStoreAdd:
    """Tests for VectorStore.add()."""

    def test_first_add_creates_index(self, store, index_path):
        chunks = _run(store.add([_draft("python backend engineer")]))

        assert len(chunks) == 1
        assert len(store) == 1
        assert index_path.is_file()
        assert store.snapshot.dimension == 32

    def test_ids_are_unique(self, store):
        first = _run(store.add([_draft("same text")]))
        second = _run(store.add([_draft("same text")]))
        assert first[0].id != second[0].id

    def test_empty_drafts_is_noop(self, store, index_path, embedder):
        assert _run(store.add([])) == []
        assert not index_path.exists()
        assert embedder.calls == []

    def test_dimension_mismatch_leaves_index_unchanged(self, store, index_path):
        _run(store.add([_draft("python backend engineer")]))

        with pytest.raises(InvalidParameterError):
            _run(store.add([_draft("other")], embeddings=[[1.0, 0.0, 0.0]]))

        assert len(store) == 1
        assert len(IndexStore(index_path).load()) == 1

    def test_supplied_embeddings_skip_provider(self, store, embedder):
        _run(store.add([_draft("text")], embeddings=[[1.0] * 32]))
        assert embedder.calls == []

    def test_failed_save_does_not_publish(self, store, index_path, monkeypatch):
        _run(store.add([_draft("python backend engineer")]))
        on_disk = index_path.read_text()

        def broken_replace(src, dst):
            raise OSError("read-only filesystem")

        monkeypatch.setattr(persistence.os, "replace", broken_replace)

        with pytest.raises(PersistenceError):
            _run(store.add([_draft("java frontend developer", doc="doc-2")]))

        assert len(store) == 1
        assert index_path.read_text() == on_disk


class TestVectorStoreSearch:
    """Tests for VectorStore.similarity_search()."""

    def test_returns_most_similar_first(self, store):
        _run(store.add([
            _draft("java frontend react developer", doc="fe"),
            _draft("python backend django engineer", doc="be"),
        ]))
        results = _run(store.similarity_search("python django backend", k=2))
        assert [c.source_document_id for c in results] == ["be", "fe"]

    def test_k_larger_than_index_returns_all(self, store):
        _run(store.add([_draft("one"), _draft("two", ordinal=1)]))
        assert len(_run(store.similarity_search("one", k=10))) == 2

    def test_missing_corpus_fails_before_embedding(self, store, embedder):
        with pytest.raises(NoCorpusError):
            _run(store.similarity_search("anything", k=4))
        assert embedder.calls == []

    def test_fresh_store_reloads_identically(self, store, index_path, embedder):
        _run(store.add([
            _draft("python backend django engineer", doc="a"),
            _draft("java frontend react developer", doc="b"),
            _draft("data science pandas analyst", doc="c"),
        ]))
        before = _run(store.similarity_search("python data engineer", k=3))

        reopened = VectorStore(IndexStore(index_path), embedder)
        after = _run(reopened.similarity_search("python data engineer", k=3))

        assert [c.id for c in after] == [c.id for c in before]
        assert after == before


class TestVectorStoreConcurrency:
    """Concurrent adds serialise and readers never see a torn artifact."""

    def test_concurrent_adds_all_persist(self, store, index_path):
        async def scenario():
            done = asyncio.Event()
            sizes: list[int] = []

            async def reader():
                while not done.is_set():
                    index = await asyncio.to_thread(IndexStore(index_path).load)
                    sizes.append(0 if index is None else len(index))
                    await asyncio.sleep(0)

            reader_task = asyncio.create_task(reader())
            results = await asyncio.gather(*(
                store.add([_draft(f"candidate {i} resume", doc=f"doc-{i}")])
                for i in range(10)
            ))
            done.set()
            await reader_task
            return results, sizes

        results, sizes = _run(scenario())

        assert len(results) == 10
        assert len(store) == 10
        loaded = IndexStore(index_path).load()
        assert len(loaded) == 10
        assert len({c.id for c in loaded.chunks}) == 10
        # Each read saw a whole snapshot; sizes only grow
        assert sizes == sorted(sizes)

    def test_cancelled_while_waiting_for_lock_writes_nothing(self, store, index_path):
        async def scenario():
            await store._lock.acquire()
            task = asyncio.create_task(store.add([_draft("late candidate")]))
            for _ in range(5):
                await asyncio.sleep(0)

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

            store._lock.release()
            for _ in range(5):
                await asyncio.sleep(0)

        _run(scenario())

        assert len(store) == 0
        assert not index_path.exists()


class TestVectorStoreLoadSave:
    """Tests for explicit load() / save()."""

    def test_load_without_artifact_raises(self, store):
        with pytest.raises(NoCorpusError):
            _run(store.load())
        assert store.snapshot is None

    def test_load_picks_up_external_writes(self, store, index_path, embedder):
        _run(store.add([_draft("python backend engineer")]))

        other = VectorStore(IndexStore(index_path), embedder)
        _run(other.add([_draft("java frontend developer", doc="doc-2")]))

        assert len(store) == 1
        reloaded = _run(store.load())
        assert len(reloaded) == 2
        assert len(store) == 2

    def test_save_writes_published_snapshot(self, store, index_path):
        _run(store.add([_draft("python backend engineer")]))
        index_path.unlink()

        _run(store.save())

        assert len(IndexStore(index_path).load()) == 1

    def test_save_before_load_is_noop(self, store, index_path):
        _run(store.save())
        assert not index_path.exists()
