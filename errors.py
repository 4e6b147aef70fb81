class GemLoggerError(Exception):
    pass


class DecodeError(GemLoggerError):
    pass


class ParseError(DecodeError):
    def __init__(self, key: str, value: str):
        super().__init__(f"failed to parse value '{value}' under key '{key}'")
        self.key = key
        self.value = value


class ArityError(DecodeError):
    def __init__(self, key: str, expected: int, found: int):
        super().__init__(f"expected {expected} comma-separated values under key '{key}', found {found}")
        self.key = key
        self.expected = expected
        self.found = found


class MissingFieldError(DecodeError):
    def __init__(self, key: str):
        super().__init__(f"no value found under key '{key}'")
        self.key = key


class URIError(DecodeError):
    def __init__(self, uri: str, reason: str):
        super().__init__(f"failed to parse URI '{uri}': {reason}")
        self.uri = uri
        self.reason = reason


class SinkSendError(GemLoggerError):
    pass


class TransportError(GemLoggerError):
    pass
