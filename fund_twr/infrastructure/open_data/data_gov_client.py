"""
data.gov.il CKAN datastore client
Pages through a datastore resource until an empty page is returned.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx

from fund_twr.domain.errors import UpstreamFailure
from fund_twr.domain.models import CategoryGroup

logger = logging.getLogger(__name__)


# Upstream datastore resources per category group
RESOURCE_IDS: Dict[CategoryGroup, tuple[str, ...]] = {
    CategoryGroup.GEMEL: (
        "91c849ed-ddc4-472b-bd09-0f5486cea35c",
        "2016d770-f094-4a2e-983e-797c26479720",
        "a30dcbea-a1d2-482c-ae29-8f781f5025fb",
    ),
    CategoryGroup.POLICIES: (
        "584e6b69-174f-46c9-b8db-03925b4c68c6",
        "672090ba-7893-4496-a07c-dc7e822cbf18",
        "c6c62cc7-fe02-4b18-8f3e-813abfbb4647",
    ),
    CategoryGroup.PENSION: (
        "a66926f3-e396-4984-a4db-75486751c2f7",
        "4694d5a7-5284-4f3d-a2cb-5887f43fb55e",
        "6d47d6b5-cb08-488b-b333-f1e717b1e1bd",
    ),
}


class DataGovClient:
    def __init__(
        self,
        base_url: str = "https://data.gov.il",
        page_size: int = 1000,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _request_page(self, client: httpx.AsyncClient, resource_id: str, offset: int) -> List[dict]:
        url = f"{self.base_url}/api/3/action/datastore_search"
        params = {"resource_id": resource_id, "limit": self.page_size, "offset": offset}
        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamFailure(f"datastore_search failed for {resource_id}: {exc}") from exc

        if response.status_code != 200:
            raise UpstreamFailure(
                f"datastore_search {resource_id} returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFailure(f"datastore_search {resource_id} returned invalid JSON") from exc

        if not isinstance(payload, dict) or not payload.get("success", True):
            raise UpstreamFailure(f"datastore_search {resource_id} reported failure")

        result = payload.get("result")
        if not isinstance(result, dict):
            raise UpstreamFailure(f"datastore_search {resource_id} returned no result")

        records = result.get("records")
        if records is None:
            return []
        if not isinstance(records, list):
            raise UpstreamFailure(f"datastore_search {resource_id} returned malformed records")
        return records

    async def fetch_resource(self, resource_id: str) -> List[dict]:
        """
        Fetch every record of one datastore resource

        Returns:
            Raw upstream records (dicts keyed by upstream field name)

        Raises:
            UpstreamFailure: on transport error, non-200, or malformed payload
        """
        records: List[dict] = []
        offset = 0
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            while True:
                page = await self._request_page(client, resource_id, offset)
                if not page:
                    break
                records.extend(page)
                offset += self.page_size
                logger.debug(f"Fetched {len(records)} records from resource {resource_id}")

        logger.info(f"Fetched {len(records)} records from resource {resource_id}")
        return records
