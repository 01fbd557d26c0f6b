from webcpd.fingerprint import (
    _BASE,
    _MODULUS,
    identity_ids,
    token_id,
    window_hashes,
)


def _direct_hash(ids: list[int]) -> int:
    h = 0
    for value in ids:
        h = (h * _BASE + value) % _MODULUS
    return h


def test_token_id_stable() -> None:
    assert token_id("identifier", "a") == token_id("identifier", "a")
    assert 0 <= token_id("identifier", "a") < _MODULUS


def test_token_id_depends_on_kind_and_value() -> None:
    ids = {
        token_id("identifier", "a"),
        token_id("identifier", "b"),
        token_id("literal", "a"),
        token_id("keyword", "if"),
    }
    assert len(ids) == 4


def test_identity_ids() -> None:
    identities = [("keyword", "if"), ("identifier", "x")]
    assert identity_ids(identities) == [
        token_id("keyword", "if"),
        token_id("identifier", "x"),
    ]


def test_window_hashes_match_direct_computation() -> None:
    ids = identity_ids([("identifier", f"v{i % 7}") for i in range(40)])
    size = 9
    rolled = list(window_hashes(ids, size))
    assert [pos for pos, _ in rolled] == list(range(len(ids) - size + 1))
    for pos, h in rolled:
        assert h == _direct_hash(ids[pos : pos + size])


def test_window_hashes_order_sensitive() -> None:
    a = identity_ids([("identifier", "x"), ("identifier", "y")])
    b = list(reversed(a))
    assert list(window_hashes(a, 2)) != list(window_hashes(b, 2))


def test_window_hashes_equal_windows_equal_hashes() -> None:
    ids = identity_ids([("identifier", v) for v in "abcXabc"])
    hashes = dict(window_hashes(ids, 3))
    assert hashes[0] == hashes[4]
    assert hashes[0] != hashes[1]


def test_window_hashes_short_stream() -> None:
    assert list(window_hashes([1, 2, 3], 4)) == []
    assert list(window_hashes([1, 2, 3], 0)) == []
    assert list(window_hashes([1, 2, 3], 3)) == [(0, _direct_hash([1, 2, 3]))]
