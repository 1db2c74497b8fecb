class StagehubError(Exception):
    pass


class ConfigurationError(StagehubError):
    pass


class RemoteAPIError(StagehubError):
    status_code: int | None
    url: str | None

    def __init__(
        self, message: str, status_code: int | None = None, url: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
