from procir.yara_cache import ScanCache


def test_get_before_set_is_none(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"data")
    cache = ScanCache("rules")
    assert cache.get(str(path)) is None


def test_set_then_get_returns_hits(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"data")
    cache = ScanCache("rules")
    cache.set(str(path), ["hit1", "hit2"])
    assert cache.get(str(path)) == ["hit1", "hit2"]


def test_empty_result_is_cached(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"data")
    cache = ScanCache("rules")
    cache.set(str(path), None)
    assert cache.get(str(path)) == []


def test_changed_file_misses(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"data")
    cache = ScanCache("rules")
    cache.set(str(path), ["hit"])
    path.write_bytes(b"much longer data")
    assert cache.get(str(path)) is None


def test_missing_file_keyed_by_path(tmp_path):
    path = str(tmp_path / "gone.bin")
    cache = ScanCache("rules")
    cache.set(path, ["hit"])
    assert cache.get(path) == ["hit"]


def test_returned_list_is_a_copy(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"data")
    cache = ScanCache("rules")
    cache.set(str(path), ["hit"])
    first = cache.get(str(path))
    first.append("extra")
    assert cache.get(str(path)) == ["hit"]


def test_caches_are_independent(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"data")
    one = ScanCache("rules-a")
    two = ScanCache("rules-b")
    one.set(str(path), ["hit"])
    assert two.get(str(path)) is None
    assert one.get(str(path)) == ["hit"]