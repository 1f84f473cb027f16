"""
drupal_module_lookup.py — Fallback chain over a live endpoint and static data.

Looks up contrib modules on drupal.org, falling back to a bundled list when
the API is unreachable or returns nothing.

Usage:
    python examples/drupal_module_lookup.py views
"""

import logging
import sys

from docscache import (
    FallbackChain,
    FallbackStep,
    JsonHttpFetcher,
    create_cache_from_env,
)

POPULAR_MODULES = [
    {"name": "views", "title": "Views"},
    {"name": "token", "title": "Token"},
    {"name": "pathauto", "title": "Pathauto"},
    {"name": "webform", "title": "Webform"},
]


async def main(query: str) -> None:
    drupal_org = JsonHttpFetcher(
        "https://www.drupal.org",
        headers={"User-Agent": "docscache-example/0.1"},
    )
    params = {"type": "project_module", "field_project_machine_name": query}

    async def static_modules():
        return [m for m in POPULAR_MODULES if query.lower() in m["name"]]

    async with create_cache_from_env() as cache:
        chain = FallbackChain(
            cache,
            [
                FallbackStep(
                    "drupal.org",
                    drupal_org.cache_key("api-d7/node.json", params),
                    drupal_org.producer("api-d7/node.json", params),
                    accept=lambda payload: bool(payload.get("list")),
                ),
                FallbackStep("static", f"static:modules:{query}", static_modules),
            ],
            default=[],
        )
        result = await chain.run()
        print(f"source={result.source} degraded={result.degraded}")
        print(result.value)
        print(cache.stats())


if __name__ == "__main__":
    import asyncio

    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "views"))
