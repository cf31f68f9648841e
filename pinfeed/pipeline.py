"""
Pins pipeline - core execution logic.

This module orchestrates the complete run:

    Sources → Parse → Normalize → Resolve thumbnails (→ Fetch) → Index → Write

Steps:
1. Discover sources in the pins directory and decide which may refresh
2. Parse and normalize every source file (errors isolated per source)
3. Resolve each pin's thumbnail; for misses on refreshable sources,
   fetch OpenGraph metadata and write it back to the cache
4. Build the indexes (content types, tags, collections, sections, metadata keys)
5. Write the pin collection JSON and flush the cache once

Design principles:
- Error isolation: one pin or source failing doesn't stop the others
- Idempotency: resolved cache entries are not fetched again unless forced
- Dry-run support: resolve everything, write nothing (`--dry-run`)
"""

import json
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set

from pinfeed.config import (
    DEBUG,
    FETCH_DELAY,
    MAX_FETCHES_PER_RUN,
    METADATA_CACHE_PATH,
    PINS_DIR,
    PINS_OUTPUT_PATH,
    THUMBNAIL_CATALOG_PATH,
)
from pinfeed.fetching.opengraph import OpenGraphFetcher
from pinfeed.models.collection import describe_collections
from pinfeed.models.metadata import MetadataEntry
from pinfeed.models.pin import Pin, RawPin
from pinfeed.parsing.tags import infer_content_type, infer_source, normalize_tags
from pinfeed.parsing.urls import bare_host, canonical_url
from pinfeed.sources.base import MissingCredentialError, PinSource
from pinfeed.sources.services import discover_sources
from pinfeed.storage.base import MetadataStore
from pinfeed.storage.catalog import ThumbnailCatalog
from pinfeed.storage.json_cache import JsonMetadataCache
from pinfeed.thumbnails.resolver import ThumbnailResolver, ThumbnailTier


# =============================================================================
# Pipeline Result Data Structures
# =============================================================================

@dataclass
class SourceResult:
    """Result of processing a single source file."""
    source_name: str
    pins_read: int
    success: bool
    refreshed: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None
    duration_ms: float = 0.0


@dataclass
class PinCollection:
    """The final structure consumed by the site."""
    pins: List[Pin] = field(default_factory=list)
    content_types: List[str] = field(default_factory=list)
    all_tags: List[str] = field(default_factory=list)
    user_tags: List[str] = field(default_factory=list)
    collections: List[str] = field(default_factory=list)
    sections: List[str] = field(default_factory=list)
    metadata_keys: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_pins(cls, pins: List[Pin]) -> "PinCollection":
        """Build the derived indexes over a list of pins."""
        content_types: Set[str] = set()
        tags: Set[str] = set()
        collections: Set[str] = set()
        sections: Set[str] = set()
        metadata_keys: Dict[str, Set[str]] = {}

        for pin in pins:
            content_types.add(pin.content_type)
            tags.update(pin.tags)
            collections.update(pin.collections)
            sections.add(pin.section)
            for key, values in pin.metadata.items():
                metadata_keys.setdefault(key, set()).update(values)

        all_tags = sorted(tags)
        return cls(
            pins=list(pins),
            content_types=sorted(content_types),
            all_tags=all_tags,
            # Free tags that don't double as a content type name
            user_tags=[tag for tag in all_tags if tag not in content_types],
            collections=sorted(collections),
            sections=sorted(sections),
            metadata_keys={key: sorted(values) for key, values in sorted(metadata_keys.items())},
        )

    def to_dict(self) -> dict:
        return {
            "pins": [pin.to_dict() for pin in self.pins],
            "contentTypes": list(self.content_types),
            "allTags": list(self.all_tags),
            "userTags": list(self.user_tags),
            "collections": list(self.collections),
            "sections": list(self.sections),
            "metadataKeys": {key: list(values) for key, values in self.metadata_keys.items()},
            "collectionDetails": [c.to_dict() for c in describe_collections(self.collections)],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"


@dataclass
class PipelineResult:
    """Complete result of a pipeline execution."""
    started_at: datetime
    finished_at: Optional[datetime] = None

    # Source results
    source_results: List[SourceResult] = field(default_factory=list)

    # Pin counts
    total_pins: int = 0
    pins_by_tier: Dict[str, int] = field(default_factory=dict)

    # Fetch counts
    fetches_attempted: int = 0
    fetch_errors: int = 0
    fetches_without_image: int = 0

    # Outputs
    collection: Optional[PinCollection] = None
    output_path: Optional[str] = None
    output_written: bool = False
    cache_written: bool = False
    dry_run: bool = False

    # Errors
    config_errors: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    fatal: bool = False

    @property
    def sources_succeeded(self) -> int:
        """Number of sources processed without error."""
        return sum(1 for r in self.source_results if r.success)

    @property
    def sources_failed(self) -> int:
        """Number of sources that failed."""
        return sum(1 for r in self.source_results if not r.success)

    @property
    def pins_placeholder(self) -> int:
        """Pins left with the placeholder thumbnail."""
        return self.pins_by_tier.get(ThumbnailTier.PLACEHOLDER.value, 0)

    @property
    def pins_resolved(self) -> int:
        """Pins with a real thumbnail from any tier."""
        return self.total_pins - self.pins_placeholder

    @property
    def duration_seconds(self) -> float:
        """Total pipeline duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0

    def count_tier(self, tier: ThumbnailTier) -> None:
        self.pins_by_tier[tier.value] = self.pins_by_tier.get(tier.value, 0) + 1

    def to_summary(self) -> str:
        """Generate a human-readable summary."""
        lines = [
            "=" * 60,
            "PINS REFRESH SUMMARY",
            "=" * 60,
            f"Started:  {self.started_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"Duration: {self.duration_seconds:.2f}s",
            f"Mode:     {'DRY RUN' if self.dry_run else 'LIVE'}",
            "",
            "Sources:",
        ]

        for sr in self.source_results:
            status = "✓" if sr.success else "✗"
            refreshed = " refreshed" if sr.refreshed else ""
            lines.append(f"  {status} {sr.source_name}: {sr.pins_read} pins{refreshed} ({sr.duration_ms:.0f}ms)")
            if sr.notice:
                lines.append(f"      Note: {sr.notice}")
            if sr.error:
                lines.append(f"      Error: {sr.error}")

        lines.extend([
            "",
            f"Pins total:       {self.total_pins}",
            f"Pins resolved:    {self.pins_resolved}",
            f"With placeholder: {self.pins_placeholder}",
        ])
        for tier in ThumbnailTier:
            if tier is ThumbnailTier.PLACEHOLDER:
                continue
            lines.append(f"  via {tier.value + ':':<12}{self.pins_by_tier.get(tier.value, 0)}")

        lines.extend([
            "",
            f"Fetches:          {self.fetches_attempted}",
            f"Fetch errors:     {self.fetch_errors}",
            f"Without image:    {self.fetches_without_image}",
        ])

        if self.dry_run:
            lines.append("\nOutput: SKIPPED (dry-run mode)")
        else:
            written = "written" if self.output_written else "unchanged"
            lines.append(f"\nOutput: {self.output_path} ({written})")
            lines.append(f"Cache:  {'written' if self.cache_written else 'unchanged'}")

        if self.config_errors:
            lines.extend(["", "Configuration errors:"])
            for error in self.config_errors:
                lines.append(f"  - {error}")

        if self.errors:
            lines.extend(["", "Errors:"])
            for error in self.errors[:5]:  # Show first 5
                lines.append(f"  - {error}")
            if len(self.errors) > 5:
                lines.append(f"  ... and {len(self.errors) - 5} more")

        lines.append("=" * 60)
        return "\n".join(lines)


# =============================================================================
# Pipeline Configuration
# =============================================================================

@dataclass
class PipelineConfig:
    """
    Configuration for a pipeline run.

    CLI arguments override config file defaults.
    """
    pins_dir: str = PINS_DIR
    output_path: str = PINS_OUTPUT_PATH
    cache_path: str = METADATA_CACHE_PATH
    catalog_path: str = THUMBNAIL_CATALOG_PATH

    # Source selection for refresh (None = all sources)
    sources: Optional[List[str]] = None

    live_fetch: bool = True
    force: bool = False
    dry_run: bool = False
    fetch_limit: int = MAX_FETCHES_PER_RUN
    fetch_delay: float = FETCH_DELAY
    verbose: bool = DEBUG

    @property
    def requested_sources(self) -> Optional[Set[str]]:
        """Explicitly requested source names, or None for 'all'."""
        if not self.sources or "all" in self.sources:
            return None
        return set(self.sources)

    @classmethod
    def from_args(cls, args) -> "PipelineConfig":
        """Create config from argparse namespace."""
        return cls(
            pins_dir=getattr(args, "pins_dir", None) or PINS_DIR,
            output_path=getattr(args, "output", None) or PINS_OUTPUT_PATH,
            cache_path=getattr(args, "cache", None) or METADATA_CACHE_PATH,
            catalog_path=getattr(args, "catalog", None) or THUMBNAIL_CATALOG_PATH,
            sources=getattr(args, "source", None) or None,
            live_fetch=not getattr(args, "offline", False),
            force=getattr(args, "force", False),
            dry_run=getattr(args, "dry_run", False),
            fetch_limit=(
                args.fetch_limit
                if getattr(args, "fetch_limit", None) is not None
                else MAX_FETCHES_PER_RUN
            ),
            verbose=getattr(args, "verbose", False) or DEBUG,
        )


# =============================================================================
# Pipeline Class
# =============================================================================

class PinsPipeline:
    """
    Builds the pin collection from markdown sources.

    Usage:
        config = PipelineConfig(sources=["vimeo"], force=True)
        pipeline = PinsPipeline(config)
        result = pipeline.run()
        print(result.to_summary())

    The store, catalog, fetcher, and sources can be injected; by default
    they are built from the config paths.
    """

    def __init__(
        self,
        config: PipelineConfig = None,
        store: Optional[MetadataStore] = None,
        catalog: Optional[ThumbnailCatalog] = None,
        fetcher: Optional[OpenGraphFetcher] = None,
        sources: Optional[List[PinSource]] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration. Defaults to PipelineConfig().
            store: Metadata cache. Defaults to the JSON cache at config.cache_path.
            catalog: Thumbnail catalog. Defaults to loading config.catalog_path.
            fetcher: OpenGraph fetcher. Defaults to OpenGraphFetcher().
            sources: Sources to process. Defaults to discovering config.pins_dir.
        """
        self.config = config or PipelineConfig()
        self.store = store if store is not None else JsonMetadataCache(self.config.cache_path)
        self.catalog = catalog if catalog is not None else ThumbnailCatalog.load(self.config.catalog_path)
        self.fetcher = fetcher or OpenGraphFetcher()
        self.resolver = ThumbnailResolver(self.catalog, self.store)
        self._sources = sources
        self._fetched_urls: Set[str] = set()
        self._last_fetch_time = 0.0
        self._fetch_limit_reported = False

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    def _get_sources(self) -> List[PinSource]:
        if self._sources is not None:
            return list(self._sources)
        return discover_sources(self.config.pins_dir)

    # -------------------------------------------------------------------------
    # Refresh gating
    # -------------------------------------------------------------------------

    def _check_refresh(self, source: PinSource, result: PipelineResult, source_result: SourceResult) -> bool:
        """
        Decide whether a source may live-fetch metadata this run.

        An explicitly requested source with missing credentials is a
        configuration error for that source only. Under 'all', missing
        credentials just turn the source's refresh off.
        """
        if not self.config.live_fetch:
            return False

        requested = self.config.requested_sources
        explicit = requested is not None and source.name in requested
        if requested is not None and not explicit:
            return False

        try:
            source.require_credentials()
        except MissingCredentialError as e:
            if explicit:
                print(f"[{source.name}] Refresh aborted: {e}")
                source_result.success = False
                source_result.error = str(e)
                result.config_errors.append(str(e))
            else:
                notice = f"refresh disabled, missing {', '.join(e.missing)}"
                print(f"[{source.name}] {notice}")
                source_result.notice = notice
            return False

        return True

    # -------------------------------------------------------------------------
    # Pin construction and resolution
    # -------------------------------------------------------------------------

    def build_pin(self, raw: RawPin, source: PinSource) -> Pin:
        """
        Normalize a raw pin's tags and construct the Pin.

        Raises:
            ValueError: If the URL is not a valid http(s) URL.
        """
        normalized = normalize_tags(raw.tags)

        cached = self.store.get(raw.url)
        og_type = cached.type if cached else None

        return Pin(
            url=raw.url,
            title=raw.title,
            notes=raw.notes,
            tags=normalized.tags,
            content_type=normalized.content_type or infer_content_type(raw.url, og_type),
            collections=normalized.collections,
            source=normalized.source or infer_source(raw.url) or source.default_source,
            year=normalized.year,
            privacy=normalized.privacy,
            metadata=normalized.metadata,
            thumbnail_url=raw.thumbnail_url,
            section=raw.section,
            source_file=source.filename,
            line_number=raw.line_number,
        )

    def _needs_fetch(self, pin: Pin, tier: ThumbnailTier) -> bool:
        """
        Whether a pin's metadata should be fetched live.

        Explicit and catalog thumbnails are authoritative, so those pins are
        never fetched. A resolved or failed cache entry is reused unless the
        run is forced.
        """
        if tier in (ThumbnailTier.EXPLICIT, ThumbnailTier.CATALOG):
            return False

        if canonical_url(pin.url) in self._fetched_urls:
            return False

        if self.config.force:
            return True

        entry = self.store.get(pin.url)
        if entry is None:
            return True
        if entry.is_resolved:
            return False
        return not entry.failed

    def _rate_limit(self) -> None:
        """Enforce the delay between successive fetches."""
        now = time.time()
        elapsed = now - self._last_fetch_time
        if elapsed < self.config.fetch_delay:
            time.sleep(self.config.fetch_delay - elapsed)
        self._last_fetch_time = time.time()

    def _fetch_into_cache(self, pin: Pin, result: PipelineResult) -> bool:
        """
        Fetch a pin's OpenGraph metadata and record it in the store.

        A failure never replaces an entry that already has an image.

        Returns:
            True if a new image was stored.
        """
        self._rate_limit()
        self._fetched_urls.add(canonical_url(pin.url))
        result.fetches_attempted += 1
        self._log(f"[fetch] {pin.url}")

        try:
            data = self.fetcher.fetch(pin.url)
        except Exception as e:
            print(f"[fetch] Error fetching {pin.url} ({pin.source_file}): {e}")
            data = None

        existing = self.store.get(pin.url)

        if data is not None and data.has_image:
            self.store.set(pin.url, data.to_entry())
            return True

        if data is None:
            result.fetch_errors += 1
            result.errors.append(f"{pin.source_file}: fetch failed for {pin.url}")
        else:
            result.fetches_without_image += 1
            self._log(f"[fetch] No OpenGraph image for {pin.url}")

        if existing is None or not existing.is_resolved:
            entry = data.to_entry() if data is not None else MetadataEntry.failure()
            self.store.set(pin.url, entry)
        return False

    def _can_fetch(self, result: PipelineResult) -> bool:
        if result.fetches_attempted < self.config.fetch_limit:
            return True
        if not self._fetch_limit_reported:
            print(f"[fetch] Fetch limit of {self.config.fetch_limit} reached; remaining pins use cached data")
            self._fetch_limit_reported = True
        return False

    def resolve_pin(self, pin: Pin, refresh: bool, result: PipelineResult) -> None:
        """
        Attach a thumbnail and cached metadata to a pin, fetching if allowed.

        Fetch problems are recorded on the result and never raised; the pin
        keeps whatever tier resolved (possibly the placeholder).
        """
        resolution = self.resolver.resolve(pin)

        if refresh and self._needs_fetch(pin, resolution.tier) and self._can_fetch(result):
            if self._fetch_into_cache(pin, result):
                resolution = self.resolver.resolve(pin)

        pin.image_url = resolution.reference
        pin.thumbnail_tier = resolution.tier.value
        result.count_tier(resolution.tier)

        entry = self.store.get(pin.url)
        if entry is not None:
            pin.attach_metadata(
                description=entry.description,
                favicon=entry.favicon,
                site_name=entry.site_name,
                title=entry.title,
            )
        if not pin.site_name:
            pin.site_name = bare_host(pin.url)

    # -------------------------------------------------------------------------
    # Source processing
    # -------------------------------------------------------------------------

    def _process_source(self, source: PinSource, result: PipelineResult) -> List[Pin]:
        """
        Parse, normalize, and resolve every pin of one source.

        Unreadable files fail the source; bad pins are skipped individually.
        """
        start_time = datetime.now()
        source_result = SourceResult(source_name=source.name, pins_read=0, success=True)
        result.source_results.append(source_result)

        refresh = self._check_refresh(source, result, source_result)
        source_result.refreshed = refresh

        try:
            raw_pins = source.read_pins(self.config.pins_dir)
        except (OSError, UnicodeDecodeError) as e:
            source_result.success = False
            source_result.error = f"{type(e).__name__}: {e}"
            source_result.duration_ms = (datetime.now() - start_time).total_seconds() * 1000
            print(f"[{source.name}] Could not read {source.filename}: {e}")
            return []

        pins: List[Pin] = []
        for raw in raw_pins:
            try:
                pin = self.build_pin(raw, source)
            except ValueError as e:
                result.errors.append(f"{source.filename}:{raw.line_number}: {e}")
                continue

            try:
                self.resolve_pin(pin, refresh, result)
            except Exception as e:
                error_msg = f"{source.filename}:{raw.line_number} {raw.url}: {type(e).__name__}: {e}"
                if self.config.verbose:
                    error_msg += f"\n{traceback.format_exc()}"
                result.errors.append(error_msg)
                if pin.image_url is None:
                    pin.image_url = self.resolver.placeholder
                    pin.thumbnail_tier = ThumbnailTier.PLACEHOLDER.value
                    result.count_tier(ThumbnailTier.PLACEHOLDER)

            pins.append(pin)

        source_result.pins_read = len(pins)
        source_result.duration_ms = (datetime.now() - start_time).total_seconds() * 1000
        self._log(f"[{source.name}] {len(pins)} pins from {source.filename}")
        return pins

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def _write_output(self, collection: PinCollection) -> bool:
        """
        Write the collection JSON if its content changed.

        Returns:
            True if the file was written.
        """
        path = Path(self.config.output_path)
        content = collection.to_json()

        if path.exists():
            try:
                if path.read_text(encoding="utf-8") == content:
                    return False
            except (OSError, UnicodeDecodeError):
                pass

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return True

    def run(self) -> PipelineResult:
        """
        Execute the full pipeline.

        Returns:
            PipelineResult with execution details and the pin collection.
        """
        result = PipelineResult(started_at=datetime.now(), dry_run=self.config.dry_run)
        result.output_path = self.config.output_path

        try:
            sources = self._get_sources()
            self._log(f"Initialized {len(sources)} sources: {[s.name for s in sources]}")

            requested = self.config.requested_sources or set()
            unknown = sorted(requested - {s.name for s in sources})
            for name in unknown:
                result.config_errors.append(f"unknown source: {name}")

            all_pins: List[Pin] = []
            for source in sources:
                all_pins.extend(self._process_source(source, result))

            collection = PinCollection.from_pins(all_pins)
            result.collection = collection
            result.total_pins = len(all_pins)

            if not self.config.dry_run:
                try:
                    result.output_written = self._write_output(collection)
                finally:
                    # Fetched metadata survives a failed output write
                    result.cache_written = self.store.flush()

        except Exception as e:
            result.fatal = True
            result.errors.append(f"Pipeline error: {str(e)}")
            if self.config.verbose:
                result.errors.append(traceback.format_exc())

        result.finished_at = datetime.now()
        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def run_pipeline(
    sources: List[str] = None,
    force: bool = False,
    live_fetch: bool = True,
    dry_run: bool = False,
    verbose: bool = False,
    store: Optional[MetadataStore] = None,
) -> PipelineResult:
    """
    Run the pipeline with specified options.

    Convenience function for programmatic use (e.g. from a site build hook).

    Args:
        sources: Source names to refresh (None = all).
        force: Re-fetch metadata even for resolved cache entries.
        live_fetch: If False, resolve from cache and catalog only.
        dry_run: If True, write neither output nor cache.
        verbose: If True, print detailed progress.
        store: Metadata store to use instead of the JSON cache.

    Returns:
        PipelineResult with execution details.
    """
    config = PipelineConfig(
        sources=sources,
        force=force,
        live_fetch=live_fetch,
        dry_run=dry_run,
        verbose=verbose,
    )
    pipeline = PinsPipeline(config, store=store)
    return pipeline.run()
