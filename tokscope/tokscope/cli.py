"""CLI entry point for tokscope."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click

from tokscope.config import Config
from tokscope.errors import ScrapeError
from tokscope.models import AccountSnapshot
from tokscope.scraper import TikTokScraper


async def _scrape_one(
    scraper: TikTokScraper, username: str,
) -> tuple[str, AccountSnapshot | None, Exception | None]:
    try:
        return username, await scraper.scrape(username), None
    except Exception as e:  # noqa: BLE001
        return username, None, e


async def _run(usernames: list[str], config: Config) -> list[tuple[str, AccountSnapshot | None, Exception | None]]:
    """Scrape all usernames concurrently, reporting each as it finishes."""
    scraper = TikTokScraper(config)
    tasks = [_scrape_one(scraper, name) for name in usernames]

    results = []
    for coro in asyncio.as_completed(tasks):
        username, snapshot, error = await coro
        results.append((username, snapshot, error))
        if snapshot is not None:
            click.echo(
                f"  ✓ @{snapshot.username} — {snapshot.followers} followers, "
                f"{snapshot.likes} likes, {snapshot.video_count} videos"
            )
            continue
        click.echo(f"  ✗ @{username}: {error}", err=True)
        if isinstance(error, ScrapeError):
            click.echo(f"    hint: {error.suggestion}", err=True)
    return results


@click.command()
@click.argument("usernames", nargs=-1, required=True)
@click.option("--proxy", "-p", multiple=True, help="Proxy address (repeatable; overrides PROXY_LIST)")
@click.option("--debug", is_flag=True, help="Headed browser, verbose logs and debug artifacts")
@click.option("--retries", "-r", type=click.IntRange(min=1), default=None, help="Attempts per account")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write snapshots as JSON")
def main(
    usernames: tuple[str, ...],
    proxy: tuple[str, ...],
    debug: bool,
    retries: int | None,
    output: str | None,
) -> None:
    """tokscope: scrape public TikTok account metrics."""
    config = Config.from_env()

    overrides: dict[str, object] = {}
    if proxy:
        overrides["proxies"] = tuple(proxy)
    if debug:
        overrides["debug"] = True
    if retries is not None:
        overrides["max_retries"] = retries
    if overrides:
        config = replace(config, **overrides)

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    click.echo(f"tokscope v0.1.0 — scraping {len(usernames)} account(s)...\n")
    results = asyncio.run(_run(list(usernames), config))

    snapshots = [snapshot for _, snapshot, _ in results if snapshot is not None]
    if output:
        payload = [snapshot.model_dump(mode="json") for snapshot in snapshots]
        Path(output).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        click.echo(f"\n✓ Written to {output}")
    elif snapshots:
        click.echo()
        for snapshot in snapshots:
            click.echo(snapshot.model_dump_json(indent=2))

    if len(snapshots) < len(results):
        sys.exit(1)


if __name__ == "__main__":
    main()
