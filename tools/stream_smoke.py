"""
Connect to the Datastream, join a few rooms and print what arrives.

    DATASTREAM_WS_URL=wss://... python tools/stream_smoke.py --seconds 30 --token <mint>
"""
import sys
sys.path.append(".")
import argparse
import asyncio
import json

from dotenv import load_dotenv

from solana_tracker.config import get_settings
from solana_tracker.datastream import Datastream, DatastreamConfig
from solana_tracker.utils.logger import setup_logging


def show(room):
    def _print(payload):
        print(room, json.dumps(payload)[:200])
    return _print


async def run(args):
    ds = Datastream(DatastreamConfig.from_settings(ws_url=args.url))
    ds.on("connected", lambda: print("connected"))
    ds.on("disconnected", lambda scope: print("disconnected:", scope))
    ds.on("reconnecting", lambda attempt: print("reconnecting, attempt", attempt))
    ds.on("error", lambda err: print("error:", err))

    ds.subscribe.latest().on(show("latest"))
    if args.token:
        ds.subscribe.price.token(args.token).on(show("price"))
        ds.subscribe.tx.token(args.token).on(show("tx"))

    async with ds:
        await asyncio.sleep(args.seconds)
        print(json.dumps(ds.get_status(), indent=2, default=str))


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--url", default=None)
    parser.add_argument("--token", default=None)
    parser.add_argument("--seconds", type=float, default=15.0)
    args = parser.parse_args()
    load_dotenv()
    setup_logging(get_settings())
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
