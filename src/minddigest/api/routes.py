"""API routes exposing stored digest entries and the crawler."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from minddigest.config import CrawlerSettings
from minddigest.crawler.bootstrap import build_coordinator
from minddigest.crawler.registry import normalize_domain
from minddigest.crawler.sites import KNOWN_STRATEGIES
from minddigest.errors import ConfigurationError, EntryAlreadyExistsError, EntryNotFoundError
from minddigest.models import DigestEntry, StoredEntry
from minddigest.store import DigestEntryStore

logger = logging.getLogger(__name__)

router = APIRouter()


class CrawlResponse(BaseModel):
    results: int
    stored: List[StoredEntry] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)


class SiteEntry(BaseModel):
    name: str
    domain: str
    start_url: str
    has_crawler: bool


class SitesResponse(BaseModel):
    sites: List[SiteEntry] = Field(default_factory=list)


def get_store() -> DigestEntryStore:
    return DigestEntryStore()


def _load_settings() -> CrawlerSettings:
    try:
        return CrawlerSettings.from_file()
    except FileNotFoundError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def crawl_and_store(settings: CrawlerSettings, store: DigestEntryStore) -> CrawlResponse:
    """Run one coordinator pass over ``settings`` and persist the results."""

    with build_coordinator(settings) as coordinator:
        results = coordinator.start_all_crawlers()
    saved, duplicates = store.save_all(results)
    return CrawlResponse(
        results=len(results),
        stored=saved,
        duplicates=[entry.source_url for entry in duplicates],
    )


@router.get("/entries", response_model=List[StoredEntry])
async def list_entries() -> List[StoredEntry]:
    """Return every stored digest entry."""

    return await run_in_threadpool(get_store().list_all)


@router.get("/entries/{entry_id}", response_model=StoredEntry)
async def get_entry(entry_id: int) -> StoredEntry:
    try:
        return await run_in_threadpool(get_store().get, entry_id)
    except EntryNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/entries", response_model=StoredEntry, status_code=201)
async def create_entry(entry: DigestEntry) -> StoredEntry:
    try:
        return await run_in_threadpool(get_store().save, entry)
    except EntryAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.put("/entries/{entry_id}", response_model=StoredEntry)
async def update_entry(entry_id: int, entry: DigestEntry) -> StoredEntry:
    try:
        return await run_in_threadpool(get_store().update, entry_id, entry)
    except EntryNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/entries/{entry_id}", status_code=204)
async def delete_entry(entry_id: int) -> Response:
    try:
        await run_in_threadpool(get_store().delete, entry_id)
    except EntryNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@router.post("/crawl", response_model=CrawlResponse)
async def trigger_crawler() -> CrawlResponse:
    """Run the crawler for every configured site and store the new entries."""

    settings = _load_settings()
    try:
        return await run_in_threadpool(crawl_and_store, settings, get_store())
    except ConfigurationError as exc:
        logger.exception("Crawler wiring is invalid")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/sites", response_model=SitesResponse)
async def list_sites() -> SitesResponse:
    """Return the configured sites and whether a crawler handles each of them."""

    settings = _load_settings()
    known = {normalize_domain(strategy.domain or "") for strategy in KNOWN_STRATEGIES}
    return SitesResponse(
        sites=[
            SiteEntry(
                name=site.name,
                domain=site.domain,
                start_url=str(site.start_url),
                has_crawler=normalize_domain(site.domain) in known,
            )
            for site in settings.sites
        ]
    )
