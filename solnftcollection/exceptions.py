class NFTScriptError(Exception):
    """Base class for errors raised while talking to the cluster."""


class RPCError(NFTScriptError):
    def __init__(self, method: str, code: int, message: str, data=None):
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.message = message
        self.data = data


class TransactionError(NFTScriptError):
    def __init__(self, message: str, signature: str = "", logs: list = None):
        super().__init__(message)
        self.signature = signature
        self.logs = logs or []


class ConfirmationTimeoutError(NFTScriptError):
    pass


class AccountNotFoundError(NFTScriptError):
    def __init__(self, address, name: str = "Account"):
        super().__init__(f"{name} not found at address '{address}'")
        self.address = address


class UnexpectedAccountError(NFTScriptError):
    pass


class KeypairFileError(NFTScriptError):
    pass
