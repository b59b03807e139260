from playback.filters import suppress_consecutive_duplicates


def test_consecutive_duplicates_are_dropped():
    got = []
    on_send = suppress_consecutive_duplicates(lambda i, s: got.append((i, s)))

    on_send(1.0, "!a")
    on_send(1.0, "!a")
    on_send(1.0, "!b")
    on_send(1.0, "!a")
    on_send(2.0, "!a")
    on_send(2.0, "!a")

    assert got == [(1.0, "!a"), (1.0, "!b"), (1.0, "!a"), (2.0, "!a")]


def test_filters_are_independent():
    a, b = [], []
    fa = suppress_consecutive_duplicates(lambda i, s: a.append(s))
    fb = suppress_consecutive_duplicates(lambda i, s: b.append(s))
    fa(1.0, "!x")
    fb(1.0, "!x")
    assert a == ["!x"] and b == ["!x"]
