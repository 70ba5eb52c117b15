from typing import Optional


class GraftError(Exception):
    pass


class ParseError(GraftError):
    def __init__(
        self, message: str, line: Optional[int] = None, column: Optional[int] = None
    ):
        self.line = line
        self.column = column
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{location}")


class RecipeError(GraftError):
    pass
