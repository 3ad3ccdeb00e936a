"""
Resource client for the core module.

Owns the authenticated connection to the remote API: executes single
requests, classifies every failure and hides multi-page continuation.
"""

import asyncio
import logging

import aiohttp
from yarl import URL

from .. import config
from .exceptions import handle_exception
from .models import CollectionPage, QueryOptions, Record, item_path
from .query import build_query_params

logger = logging.getLogger(__name__)


def is_absolute(link: str) -> bool:
    return link.startswith("http://") or link.startswith("https://")


class ResourceClient:
    """Performs requests against the remote API on behalf of one principal.

    The bearer token is fixed for the lifetime of the instance; rotating it
    means building a new client. A session can be shared between clients (it
    is then never closed here), otherwise one is created on first use and
    released by `close()`.
    """

    def __init__(
        self,
        token: str,
        session: aiohttp.ClientSession | None = None,
        base_url: str | None = None,
    ):
        if not token or not token.strip():
            raise ValueError("A bearer token is required")
        self._token = token
        self._session = session
        self._owns_session = session is None
        self.base_url = (base_url or config.GRAPH_ENDPOINT).rstrip("/")

    @property
    def token(self) -> str:
        return self._token

    def __repr__(self) -> str:
        return f"<ResourceClient {self.base_url}>"

    async def __aenter__(self) -> "ResourceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    def url(self, endpoint: str) -> str:
        if is_absolute(endpoint):
            return endpoint
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.base_url}{endpoint}"

    async def _request(
        self,
        method: str,
        url: str | URL,
        context: str,
        params: dict | None = None,
        json: dict | None = None,
        if_match: str | None = None,
    ):
        """Issue one request and return its decoded JSON body (None when empty)."""
        headers = {"Authorization": f"Bearer {self._token}", "Accept": "application/json"}
        if if_match:
            headers["If-Match"] = if_match
        logger.debug("%s %s %s", method, url, params or "")
        session = self._get_session()
        try:
            async with session.request(
                method, url, params=params, json=json, headers=headers
            ) as res:
                if not res.ok:
                    handle_exception(
                        res.status,
                        context,
                        await res.read(),
                        retry_after=res.headers.get("Retry-After"),
                    )
                if res.status == 204:
                    return None
                try:
                    return await res.json(content_type=None)
                except ValueError as e:
                    handle_exception(res.status, context, cause=e)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            handle_exception(None, context, cause=e)

    def _page(self, body) -> CollectionPage:
        body = body or {}
        return CollectionPage(
            items=list(body.get("value") or []),
            next_link=body.get(config.NEXT_LINK_KEY) or None,
        )

    async def get(
        self, endpoint: str, options: QueryOptions | None = None, context: str | None = None
    ) -> CollectionPage:
        """Fetch the first page of a collection."""
        body = await self._request(
            "GET",
            self.url(endpoint),
            context or f"get data from {endpoint}",
            params=build_query_params(options),
        )
        return self._page(body)

    async def _follow(
        self, link: str, endpoint: str, options: QueryOptions | None, context: str
    ) -> CollectionPage:
        if is_absolute(link):
            # the link already carries every query parameter, request it untouched
            body = await self._request("GET", URL(link, encoded=True), context)
        else:
            params = build_query_params(options)
            params.pop("$skip", None)
            params[config.SKIP_TOKEN_PARAM] = link
            body = await self._request("GET", self.url(endpoint), context, params=params)
        return self._page(body)

    async def get_all(
        self, endpoint: str, options: QueryOptions | None = None, context: str | None = None
    ) -> list[Record]:
        """Fetch every item of a collection, following continuation links.

        Pages are requested one after another: a continuation link is only
        valid relative to the page that produced it. An empty page does not
        end the collection, only a missing continuation link does.
        """
        context = context or f"get data from {endpoint}"
        page = await self.get(endpoint, options, context=context)
        items = list(page.items)
        seen = set()
        next_link = page.next_link
        while next_link:
            if next_link in seen:
                handle_exception(
                    None, context, {"error": {"message": "repeated continuation link"}}
                )
            seen.add(next_link)
            page = await self._follow(next_link, endpoint, options, context)
            items.extend(page.items)
            next_link = page.next_link
        return items

    async def get_by_id(
        self,
        endpoint: str,
        item_id: str,
        options: QueryOptions | None = None,
        context: str | None = None,
    ) -> Record:
        path = item_path(endpoint, item_id)
        body = await self._request(
            "GET",
            self.url(path),
            context or f"get resource at {path}",
            params=build_query_params(options, single_item=True),
        )
        return body or {}

    async def post(self, endpoint: str, body: dict, context: str | None = None) -> Record:
        result = await self._request(
            "POST", self.url(endpoint), context or f"create resource at {endpoint}", json=body
        )
        return result or {}

    async def patch(
        self,
        endpoint: str,
        body: dict,
        if_match: str | None = None,
        context: str | None = None,
    ) -> Record:
        result = await self._request(
            "PATCH",
            self.url(endpoint),
            context or f"update resource at {endpoint}",
            json=body,
            if_match=if_match,
        )
        return result or {}

    async def delete(
        self, endpoint: str, if_match: str | None = None, context: str | None = None
    ) -> None:
        await self._request(
            "DELETE",
            self.url(endpoint),
            context or f"delete resource at {endpoint}",
            if_match=if_match,
        )
