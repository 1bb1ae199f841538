"""Example 1: Batched Request

This example shows the basic usage of wundergrounded: queue several
features and fetch them for one location in a single API call, with
caching and rate limiting turned on.

Requires WUNDERGROUND_API_KEY in the environment (or a .env file).
"""

import asyncio
import logging

from wundergrounded import WundergroundClient


def on_weather(error, data):
    """Print a short summary of the batched response."""
    if error is not None:
        print(f"  ✗ Request failed: {data}")
        return

    observation = data["current_observation"]
    print(f"  ✓ {observation['display_location']['full']}: {observation['weather']}")
    for day in data["forecast"]["simpleforecast"]["forecastday"]:
        print(f"    {day['date']['weekday']}: {day['conditions']}")


async def main():
    """Run batched request example."""
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    print("=" * 60)
    print("wundergrounded: Example 1: Batched Request")
    print("=" * 60)
    print()

    async with WundergroundClient().cache(300, 30).limit(10, "minute").debug(True) as wu:
        print("Step 1: Fetching conditions + forecast for San Francisco...")
        await wu.conditions().forecast().execute("CA/San_Francisco", on_weather)
        print()

        print("Step 2: Same request again (served from cache)...")
        await wu.conditions().forecast().execute("CA/San_Francisco", on_weather)
        print()

        stats = wu.cache_store.stats()
        print(f"Cache: {stats['hits']} hit(s), {stats['misses']} miss(es), {stats['keys']} key(s)")


if __name__ == "__main__":
    asyncio.run(main())
