import threading

from image_harvester.storage import load_artifact
from image_harvester.store import ImageStore


def test_insert_and_get():
    store = ImageStore()
    store.insert("http://x/1.png", b"abc")
    assert store.get("http://x/1.png") == b"abc"
    assert "http://x/1.png" in store
    assert store.get("http://x/missing") is None
    assert len(store) == 1


def test_last_write_wins():
    store = ImageStore()
    store.insert("http://x/1.png", b"first")
    store.insert("http://x/1.png", b"second")
    assert len(store) == 1
    assert store.get("http://x/1.png") == b"second"


def test_snapshot_is_a_copy():
    store = ImageStore()
    store.insert("a", b"1")
    snap = store.snapshot()
    store.insert("b", b"2")
    assert snap == {"a": b"1"}


def test_concurrent_inserts_are_all_kept():
    store = ImageStore()
    barrier = threading.Barrier(8)

    def worker(n: int) -> None:
        barrier.wait()
        for i in range(500):
            store.insert(f"http://x/{n}/{i}", bytes([n, i % 256]))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 8 * 500
    assert store.get("http://x/3/300") == bytes([3, 300 % 256])


def test_export(tmp_path):
    store = ImageStore()
    store.insert("http://x/1.png", b"0123456789")
    path = tmp_path / "images.bin"
    store.export(path)
    assert load_artifact(path) == {"http://x/1.png": b"0123456789"}
