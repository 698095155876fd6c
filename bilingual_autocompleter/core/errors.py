# errors.py - exceptions shared by the asset loaders


class AssetFormatError(ValueError):
    """Raised when a single line of a dictionary or n-gram file cannot be parsed."""

    def __init__(self, line_no: int, line: str, reason: str):
        super().__init__(f"line {line_no}: {reason}: {line!r}")
        self.line_no = line_no
        self.line = line
        self.reason = reason
