class ExtractorError(Exception):
    pass


class InvalidURLError(ExtractorError, ValueError):
    pass


class ResponseTooLarge(ExtractorError):
    def __init__(self, url: str, limit: int):
        super().__init__(f"response from {url} exceeds {limit} bytes")
        self.url = url
        self.limit = limit


class ExtractionNotFound(ExtractorError, KeyError):
    def __str__(self) -> str:
        # KeyError repr()s its argument
        return str(self.args[0]) if self.args else "extraction not found"


class InvalidTransition(ExtractorError):
    pass


class ExtractionNotReady(ExtractorError):
    pass


class ExtractionCancelled(ExtractorError):
    pass
