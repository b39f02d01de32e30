class MygitError(Exception):
    """Base class for everything the object store raises."""


class ObjectFormatError(MygitError):
    """Serialized object bytes could not be parsed."""


class MalformedHeader(ObjectFormatError):
    pass


class InvalidSize(ObjectFormatError):
    pass


class TruncatedContent(ObjectFormatError):
    pass


class MalformedTreeEntry(ObjectFormatError):
    pass


class MalformedCommit(ObjectFormatError):
    pass


class UnsupportedObjectType(ObjectFormatError):
    pass


class UnexpectedObjectType(MygitError):
    def __init__(self, oid, expected, actual):
        super().__init__(f'{oid}: expected {expected}, got {actual}')
        self.oid = oid
        self.expected = expected
        self.actual = actual


class CorruptStream(MygitError):
    pass


class ObjectNotFound(MygitError):
    def __init__(self, oid):
        super().__init__(f'object {oid} not found')
        self.oid = oid


class IOFailure(MygitError):
    def __init__(self, path, reason):
        super().__init__(f'{path}: {reason}')
        self.path = path
