"""Discover the current GraphQL query ID for the Bookmarks operation.

X rotates query IDs every few weeks. The live ID is embedded in the web
client's main bundle, so we fetch x.com, find the bundle URL, and search it.
Any failure along the way yields the last-known-good FALLBACK_QUERY_ID.
"""

import logging
import re

import httpx

logger = logging.getLogger(__name__)

FALLBACK_QUERY_ID = "-LGfdImKeQz0xS_jjUwzlA"

LANDING_URL = "https://x.com/"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

BUNDLE_RE = re.compile(
    r"https://abs\.twimg\.com/responsive-web/client-web/main\.[a-z0-9]+\.js",
    re.IGNORECASE,
)
QUERY_ID_RE = re.compile(r'queryId:"([^"]+)",operationName:"Bookmarks"')
# Some builds put other keys between queryId and operationName
QUERY_ID_ALT_RE = re.compile(r'\{queryId:"([^"]+)"[^}]*operationName:"Bookmarks"')


def find_query_id(bundle: str) -> str | None:
    """Search a main bundle for the Bookmarks query ID."""
    match = QUERY_ID_RE.search(bundle) or QUERY_ID_ALT_RE.search(bundle)
    return match.group(1) if match else None


class QueryIdResolver:
    """Resolve the Bookmarks query ID once and remember it.

    The first ``resolve()`` performs at most one landing-page fetch and one
    bundle fetch; its outcome (resolved or fallback) is reused for the
    lifetime of the resolver. Create a fresh resolver to resolve again.
    """

    def __init__(self, http_client: httpx.Client | None = None, timeout: float = 15.0):
        self._http_client = http_client
        self._timeout = timeout
        self._query_id: str | None = None

    @property
    def resolved(self) -> bool:
        return self._query_id is not None

    def resolve(self) -> str:
        if self._query_id is None:
            self._query_id = self._discover() or FALLBACK_QUERY_ID
        return self._query_id

    def _discover(self) -> str | None:
        client = self._http_client or httpx.Client(
            timeout=self._timeout, follow_redirects=True
        )
        try:
            html = self._get_text(client, LANDING_URL)
            match = BUNDLE_RE.search(html)
            if not match:
                logger.warning("Main bundle URL not found on %s; using fallback query ID", LANDING_URL)
                return None
            logger.debug("Found main bundle at %s", match.group(0))

            query_id = find_query_id(self._get_text(client, match.group(0)))
            if not query_id:
                logger.warning("Bookmarks query ID not found in bundle; using fallback")
                return None
            logger.info("Resolved Bookmarks query ID: %s", query_id)
            return query_id
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Query ID discovery failed (%s); using fallback", e)
            return None
        finally:
            if self._http_client is None:
                client.close()

    @staticmethod
    def _get_text(client: httpx.Client, url: str) -> str:
        response = client.get(url, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
        return response.text
