class Gpm8212Error(Exception):
    # Base class for errors raised by the GPM-8212 driver
    pass


class TransportError(Gpm8212Error, IOError):
    # Error class used when the serial connection fails while writing or reading
    pass


class ReadTimeout(TransportError):
    # Error class used when a read on the connection times out before the terminator arrives
    pass


class UnsupportedVariant(Gpm8212Error, ValueError):
    # Error class used when a mode, range or reading has no mnemonic in our tables
    pass


class ResponseTooLong(Gpm8212Error, ValueError):
    # Error class used when a response exceeds the configured maximum length
    pass


class InvalidReading(Gpm8212Error, ValueError):
    # Error class used when a reading isn't ASCII or can't be interpreted as a decimal number
    pass


class CloseError(Gpm8212Error, IOError):
    """ Error class used when one or both halves of the connection fail to close

    Attributes:
        write_error: exception raised closing the writer, or None if it closed cleanly
        read_error: exception raised closing the reader, or None if it closed cleanly
    """

    def __init__(self, write_error=None, read_error=None):
        self.write_error = write_error
        self.read_error = read_error

        failures = [
            f"{half} failed to close: {error!r}"
            for half, error in [("Writer", write_error), ("Reader", read_error)]
            if error is not None
        ]
        super().__init__("; ".join(failures))
