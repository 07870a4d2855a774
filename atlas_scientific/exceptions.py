class AtlasScientificError(Exception):
    # Base class for everything raised by this driver
    pass


class TransportError(AtlasScientificError):
    # Error class used when the underlying bus read or write fails
    pass


class ReadError(AtlasScientificError):
    """ Raised when the status byte of a response frame reports anything other than success """

    status = None

    def __init__(self, message: str = None):
        super().__init__(
            message or f"{self.__class__.__name__} (status code {self.status})"
        )


class DeviceError(ReadError):
    # The device could not process the command (status code 2)
    status = 2


class PendingTimeoutError(ReadError):
    # The device was still processing the command after the retry (status code 254)
    status = 254


class NoDataError(ReadError):
    # The device had no data to send (status code 255)
    status = 255


class ParseError(AtlasScientificError, ValueError):
    # Error class used when we can't interpret the payload of a response
    pass


class ValidationError(AtlasScientificError, ValueError):
    # Error class used when an argument or a reply violates the documented domain
    pass
