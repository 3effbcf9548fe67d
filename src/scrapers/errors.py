"""Error taxonomy for the article fetch pipeline."""


class ArticleFetchError(Exception):
    """Structured fetch error with category metadata."""

    category = "FETCH_ERROR"

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.message = message
        self.url = url

    def with_context(self, site_title: str, url: str) -> "ArticleFetchError":
        """Return a copy prefixed with the site title and suffixed with the URL."""
        message = f"[{site_title}] {self.message}"
        if url and not self.message.endswith(url):
            message = f"{message}: {url}"
        return type(self)(message, url=url)


class InvalidURL(ArticleFetchError):
    category = "INVALID_URL"


class FetchFailed(ArticleFetchError):
    category = "FETCH"


class NoTitleElement(ArticleFetchError):
    category = "NO_TITLE"


class NoContentMatched(ArticleFetchError):
    category = "NO_CONTENT"


class RenderFailed(ArticleFetchError):
    category = "RENDER"


class TimeParseError(ArticleFetchError):
    category = "TIME_PARSE"


class StaleArticle(ArticleFetchError):
    """Advisory only: the article was built but is older than the stale window."""

    category = "STALE"
