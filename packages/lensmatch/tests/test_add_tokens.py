"""Tests for ADD-power token classification."""

import pytest

from lensmatch.add_tokens import classify_add


def test_no_tokens():
    state = classify_add("Acuvue Oasys 1-Day")
    assert state.has_add is False
    assert state.is_ambiguous is False
    assert state.tokens == ()


@pytest.mark.parametrize("text", ["ADD +2.00", "add 1.50D", "ADD: +2.50 N", "ADD HIGH", "add med"])
def test_single_token_means_add(text):
    state = classify_add(text)
    assert state.has_add is True
    assert state.is_ambiguous is False
    assert len(state.tokens) == 1


def test_two_numeric_tokens_are_ambiguous():
    state = classify_add("+2.00 N +1.50 D")
    assert state.has_add is False
    assert state.is_ambiguous is True
    assert state.tokens == ("+2.00 N", "+1.50 D")


def test_mixed_numeric_and_categorical_are_ambiguous():
    state = classify_add("ADD +2.00 HIGH")
    assert state.is_ambiguous is True
    assert state.has_add is False


def test_categorical_whole_words_only():
    assert classify_add("MEDIUM").has_add is False
    assert classify_add("highly rated").has_add is False


def test_digits_inside_longer_numbers_do_not_count():
    assert classify_add("12.345").tokens == ()
    assert classify_add("ref 10.50").tokens == ()
