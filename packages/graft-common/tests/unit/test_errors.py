from graft.common import GraftError, ParseError, RecipeError


def test_parse_error_carries_position():
    error = ParseError("Unsupported syntax", line=3, column=7)

    assert isinstance(error, GraftError)
    assert error.line == 3
    assert error.column == 7
    assert str(error) == "Unsupported syntax (line 3, column 7)"


def test_parse_error_without_position():
    assert str(ParseError("bad input")) == "bad input"


def test_recipe_error_is_a_graft_error():
    assert issubclass(RecipeError, GraftError)
