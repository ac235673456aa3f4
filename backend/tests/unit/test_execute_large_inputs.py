import pytest

from snapline.database import execute_large_inputs


def test_partitions_respect_chunk_size():
    calls = []

    def fn(chunk):
        calls.append(list(chunk))
        return [v * 10 for v in chunk]

    result = execute_large_inputs(range(7), fn, chunk_size=3)

    assert calls == [[0, 1, 2], [3, 4, 5], [6]]
    assert result == [0, 10, 20, 30, 40, 50, 60]


def test_empty_input_never_calls_fn():
    def fn(chunk):
        raise AssertionError("should not be called")

    assert execute_large_inputs([], fn, chunk_size=10) == []


def test_exact_multiple_of_chunk_size():
    calls = []
    execute_large_inputs(range(4), lambda c: calls.append(c) or [], chunk_size=2)
    assert calls == [[0, 1], [2, 3]]


def test_chunk_size_defaults_to_settings():
    from snapline.config import get_settings

    size = get_settings().max_in_clause
    calls = []
    execute_large_inputs(range(size + 1), lambda c: calls.append(len(c)) or [])
    assert calls == [size, 1]


def test_invalid_chunk_size():
    with pytest.raises(ValueError):
        execute_large_inputs([1], lambda c: c, chunk_size=0)
