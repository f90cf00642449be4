import pytest

from flashgen.services.generation import SourceTextError, hash_source_text, validate_source_text


def test_hash_is_sha256_hex():
    digest = hash_source_text("abc")
    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


@pytest.mark.parametrize("length", [1000, 5000, 10000])
def test_accepts_text_within_bounds(length):
    validate_source_text("x" * length)


def test_rejects_short_text():
    with pytest.raises(SourceTextError, match="at least 1000"):
        validate_source_text("x" * 999)


def test_rejects_long_text():
    with pytest.raises(SourceTextError, match="cannot exceed 10000"):
        validate_source_text("x" * 10001)
