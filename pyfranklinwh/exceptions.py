class PyFranklinWHException(Exception):
    pass


class PyFranklinWHInvalidConfigurationParameter(PyFranklinWHException):
    pass


class PyFranklinWHConnectionError(PyFranklinWHException, ConnectionError):
    pass


class AuthError(PyFranklinWHException):
    """Login rejected by the relay"""
    pass


class CommandError(PyFranklinWHException):
    """Terminal relay failure or retry budget exhausted"""

    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class UnknownMode(PyFranklinWHException, ValueError):
    def __init__(self, mode):
        super().__init__(f"Unknown mode: {mode}")
        self.mode = mode


class DecodeError(PyFranklinWHException):
    """Relay response does not have the expected shape"""
    pass


class LockTimeout(PyFranklinWHException, TimeoutError):
    pass
