import asyncio
import sys
from dataclasses import dataclass, field, fields

import click
import httpx
from rich import box
from rich.console import Console
from rich.table import Table

from .config import (
    FilterMode,
    FilterPreferences,
    PreferencesStore,
    Settings,
    get_settings,
    load_preferences,
)
from .document.base import DocumentTree, Flag
from .document.soup import SoupDocument
from .logging import PerformanceLogger, get_logger, log_error, log_processing_stage, setup_logging
from .models.items import MUTED_RESULT, ContentItem, ItemState
from .models.llm_client import ClassificationClient
from .policy import Action, PolicyDecision, PolicyEngine
from .processing.extract import extract_content
from .processing.locator import locate_items
from .processing.mute import is_muted, matched_terms
from .processing.selectors import DEFAULT_SELECTORS, FeedSelectors
from .utils import RateLimiter
from .visibility import VisibilityController
from .watcher import ChangeWatcher, ProcessedIndex

logger = get_logger(__name__)


@dataclass
class ScanStats:
    """Counters for one or more scans."""
    located: int = 0
    skipped: int = 0
    muted: int = 0
    classified: int = 0
    hidden: int = 0
    badged: int = 0
    failed: int = 0

    def merge(self, other: "ScanStats") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))


@dataclass
class RunContext:
    """Everything one page-lifetime run needs.

    Preferences and settings are read once at creation. The processed index,
    rate limiter and scan lock are run state: created here, never persisted,
    and discarded with the context.
    """
    preferences: FilterPreferences
    settings: Settings
    client: ClassificationClient
    controller: VisibilityController
    policy: PolicyEngine = field(default_factory=PolicyEngine)
    index: ProcessedIndex = field(default_factory=ProcessedIndex)
    selectors: FeedSelectors = DEFAULT_SELECTORS
    stats: ScanStats = field(default_factory=ScanStats)
    scan_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def create_context(
    preferences: FilterPreferences,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
    selectors: FeedSelectors = DEFAULT_SELECTORS
) -> RunContext:
    """Build a fresh run context from startup configuration."""
    settings = settings or get_settings()
    rate_limiter = RateLimiter(limit=settings.rate_limit, window_ms=settings.rate_window_ms)
    client = ClassificationClient(
        api_key=preferences.api_key,
        prompt_template=preferences.system_prompt,
        rate_limiter=rate_limiter,
        settings=settings,
        http_client=http_client
    )
    return RunContext(
        preferences=preferences,
        settings=settings,
        client=client,
        controller=VisibilityController(preferences.filter_mode, selectors=selectors),
        selectors=selectors
    )


async def process_item(ctx: RunContext, item: ContentItem, stats: ScanStats | None = None) -> PolicyDecision | None:
    """Run one located item through extraction, classification and policy.

    The identity is claimed before the classification await, so a scan that
    starts meanwhile cannot pick the same item up again.

    Returns:
        The applied decision, or None when the item was skipped
    """
    stats = stats if stats is not None else ScanStats()

    if item.identity in ctx.index:
        return None

    extract_content(item, ctx.selectors)
    if len(item.text) < ctx.settings.min_text_length:
        logger.debug("Skipping sparse item", identity=item.identity, length=len(item.text))
        stats.skipped += 1
        return None

    ctx.index.claim(item.identity)
    try:
        if is_muted(item.text, ctx.preferences.mute_words):
            item.advance(ItemState.MUTED)
            item.result = MUTED_RESULT
            stats.muted += 1
            logger.info(
                "Item muted",
                identity=item.identity,
                terms=matched_terms(item.text, ctx.preferences.mute_words)
            )
            decision = ctx.policy.decide(MUTED_RESULT, muted=True)
        else:
            item.result = await ctx.client.classify(item.text, item.author.display_name)
            item.advance(ItemState.CLASSIFIED)
            stats.classified += 1
            decision = ctx.policy.decide(item.result)

        ctx.controller.apply(item, decision)
        if decision.action is Action.HIDE:
            stats.hidden += 1
        else:
            stats.badged += 1
        return decision
    finally:
        item.handle.set_flag(Flag.PROCESSED)


async def run_scan(ctx: RunContext, document: DocumentTree) -> ScanStats:
    """Locate and process every eligible item, one at a time.

    Scans sharing a context run one after another, so at most one
    classification call is in flight per context.
    """
    stats = ScanStats()

    async with ctx.scan_lock:
        with PerformanceLogger("scan", logger):
            items = locate_items(document, ctx.selectors)
            stats.located = len(items)

            for item in items:
                try:
                    await process_item(ctx, item, stats)
                except Exception as e:
                    stats.failed += 1
                    logger.error(
                        "Failed to process item",
                        **log_error(e, context="process_item", identity=item.identity)
                    )

    ctx.stats.merge(stats)
    logger.info(
        "Scan finished",
        **log_processing_stage(
            "scan", stats.located, stats.hidden + stats.badged,
            hidden=stats.hidden, badged=stats.badged, skipped=stats.skipped, failed=stats.failed
        )
    )
    return stats


class FeedCleaner:
    """Keeps a live document filtered as it grows.

    Mutations are debounced into scans, which run one after another on the
    context's scan lock.
    """

    def __init__(self, document: DocumentTree, ctx: RunContext):
        self.document = document
        self.ctx = ctx
        self.watcher = ChangeWatcher(document, self._schedule_scan, ctx.settings.debounce_ms)
        self._tasks: set[asyncio.Task] = set()

    async def start(self) -> ScanStats:
        """Subscribe to changes and run the initial scan."""
        self.watcher.start()
        return await self.scan()

    async def scan(self) -> ScanStats:
        return await run_scan(self.ctx, self.document)

    async def wait_idle(self) -> None:
        """Wait until no debounced or running scan remains."""
        while self.watcher.debouncer.pending or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks))
            else:
                await asyncio.sleep(self.watcher.debouncer.delay)

    async def stop(self) -> None:
        self.watcher.stop()
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
        await self.ctx.client.aclose()

    def restore(self, identity: str) -> bool:
        return self.ctx.controller.restore(identity)

    def _schedule_scan(self) -> None:
        task = asyncio.get_running_loop().create_task(self.scan())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


async def clean_snapshot(
    document: DocumentTree,
    preferences: FilterPreferences,
    settings: Settings | None = None
) -> ScanStats:
    """Run a single scan over a static document."""
    ctx = create_context(preferences, settings)
    async with ctx.client:
        return await run_scan(ctx, document)


def _stats_table(stats: ScanStats, preferences: FilterPreferences) -> Table:
    table = Table(title="Feed Cleaner", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Mode", preferences.filter_mode.value)
    table.add_row("Oracle", "configured" if preferences.api_key else "not configured")
    for f in fields(stats):
        table.add_row(f.name.capitalize(), str(getattr(stats, f.name)))
    return table


@click.group()
def cli():
    """Feed Cleaner - hide low-value items in a content feed."""


@cli.command("filter")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", type=click.Choice([m.value for m in FilterMode]), help="Conceal by hiding or blurring")
@click.option("--mute", help="Comma-separated mute words (replaces stored ones)")
@click.option("--api-key", help="Gemini API key to use")
@click.option("--prefs", type=click.Path(dir_okay=False), help="Preferences YAML file")
@click.option(
    "--output",
    "-o",
    type=click.File("w"),
    default="-",
    help="Output file (default: stdout)",
)
@click.option("--log-level", default="ERROR", help="Log level")
@click.option("--verbose", is_flag=True, help="Show detailed progress information")
def filter_command(snapshot, mode, mute, api_key, prefs, output, log_level, verbose):
    """Filter a saved feed SNAPSHOT and write the resulting HTML."""
    setup_logging(log_level="INFO" if verbose else log_level, json_logging=False)
    console = Console(stderr=True)

    try:
        settings = get_settings()
        store = PreferencesStore(prefs or settings.preferences_file)
        preferences = load_preferences(settings, store)

        overrides = {}
        if mode:
            overrides["filter_mode"] = mode
        if mute is not None:
            overrides["mute_words"] = mute
        if api_key:
            overrides["api_key"] = api_key
        if overrides:
            preferences = FilterPreferences(**{**preferences.model_dump(), **overrides})

        document = SoupDocument.from_file(snapshot)
        stats = asyncio.run(clean_snapshot(document, preferences, settings))

        output.write(document.to_html())
        console.print(_stats_table(stats, preferences))

    except Exception as e:
        logger.error("CLI execution failed", error=str(e))
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command("prefs")
@click.option("--prefs", type=click.Path(dir_okay=False), help="Preferences YAML file")
def prefs_command(prefs):
    """Show the stored filter preferences."""
    console = Console()
    store = PreferencesStore(prefs or get_settings().preferences_file)

    table = Table(title=str(store.path), box=box.ROUNDED)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key in PreferencesStore.KEYS:
        value = store.get(key)
        if key == "api_key" and value:
            value = value[:4] + "…"
        elif key == "system_prompt" and value:
            value = value.splitlines()[0] + " …"
        table.add_row(key, "(default)" if value in (None, "", []) else str(value))
    console.print(table)


if __name__ == "__main__":
    cli()
