from services.text_wrap import wrap_words


def _measure(text: str) -> float:
    # Monospace stand-in: every character is 10px wide.
    return 10.0 * len(text)


def test_single_word_is_one_line():
    assert wrap_words("Trustworthy", _measure, 400) == ["Trustworthy"]


def test_empty_and_blank_text_have_no_lines():
    assert wrap_words("", _measure, 400) == []
    assert wrap_words("   \n\t ", _measure, 400) == []


def test_forty_words_at_eight_per_line_give_five_lines():
    # "word " is 50px, so exactly eight fit in 400px.
    text = " ".join(["word"] * 40)
    lines = wrap_words(text, _measure, 400)
    assert len(lines) == 5
    assert all(len(line.split()) == 8 for line in lines)


def test_candidate_equal_to_max_width_still_fits():
    # "ab cd " is exactly 60px.
    assert wrap_words("ab cd", _measure, 60) == ["ab cd"]
    assert wrap_words("ab cd", _measure, 59) == ["ab", "cd"]


def test_over_wide_word_sits_alone_without_splitting():
    lines = wrap_words("a supercalifragilistic b", _measure, 50)
    assert lines == ["a", "supercalifragilistic", "b"]


def test_over_wide_first_word_is_not_preceded_by_empty_line():
    assert wrap_words("supercalifragilistic", _measure, 50) == ["supercalifragilistic"]


def test_runs_of_whitespace_collapse():
    assert wrap_words("one   two\nthree", _measure, 1000) == ["one two three"]


def test_lines_have_no_trailing_space():
    lines = wrap_words(" ".join(["word"] * 20), _measure, 200)
    assert all(line == line.rstrip() for line in lines)
