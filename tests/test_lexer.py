"""
Tokenizer tests: splitting on whitespace and special symbols.
"""

from lexer import is_number, is_special, tokenize


class TestTokenize:
    """Line to token sequence"""

    def test_spaced_assignment(self):
        assert tokenize("x = 5") == ["x", "=", "5"]

    def test_symbols_split_without_spaces(self):
        assert tokenize("x=(a+b)*2") == ["x", "=", "(", "a", "+", "b", ")", "*", "2"]

    def test_all_special_symbols(self):
        assert tokenize("=()#+-*/^<>!") == list("=()#+-*/^<>!")

    def test_multi_character_tokens_kept_intact(self):
        assert tokenize("total = counter1 + 250") == ["total", "=", "counter1", "+", "250"]

    def test_tabs_and_carriage_return_are_whitespace(self):
        assert tokenize("while\tx<3\r") == ["while", "x", "<", "3"]

    def test_repeated_spaces_collapse(self):
        assert tokenize("   a    +   b   ") == ["a", "+", "b"]

    def test_empty_line_yields_sentinel(self):
        assert tokenize("") == [""]

    def test_blank_line_yields_sentinel(self):
        assert tokenize("    \t ") == [""]

    def test_comment_line(self):
        assert tokenize("# set up counters") == ["#", "set", "up", "counters"]

    def test_dot_is_not_a_separator(self):
        assert tokenize("3.5 + 1") == ["3.5", "+", "1"]

    def test_bang_is_tokenized(self):
        assert tokenize("a!b") == ["a", "!", "b"]


class TestClassification:
    """Number / symbol predicates over token text"""

    def test_digits_are_numbers(self):
        assert is_number("0")
        assert is_number("007")
        assert is_number("123456")

    def test_identifiers_are_not_numbers(self):
        assert not is_number("x")
        assert not is_number("3x")
        assert not is_number("3.5")

    def test_empty_token_is_not_a_number(self):
        assert not is_number("")

    def test_non_ascii_digits_are_not_numbers(self):
        assert not is_number("²")

    def test_special_symbols(self):
        assert is_special("=")
        assert is_special("!")
        assert not is_special("while")
        assert not is_special("x")
