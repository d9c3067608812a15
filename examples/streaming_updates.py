"""
Example: Streaming Updates

Creates a trend, pushes events over a single long-lived update stream and
prints the server's tally. The stream keeps itself alive with a heartbeat
while the loop is idle.
"""

import logging
import random
import time

from streamdrill_client import ClientConfig, StreamDrillClient

TERMS = ["python", "scala", "java", "rust", "go"]


def main():
    logging.basicConfig(level=logging.INFO)

    # Reads STREAMDRILL_SERVER_URL, STREAMDRILL_API_KEY, ...
    client = StreamDrillClient(config=ClientConfig.from_env())

    token, is_new = client.create("searches", "term", 1000, ["day", "hour", "minute"])
    print(f"Trend 'searches' {'created' if is_new else 'exists'}, token {token}")

    stream = client.stream()
    try:
        for i in range(500):
            stream.update("searches", [random.choice(TERMS)])
            if i % 100 == 99:
                # idle long enough for a keep-alive newline
                time.sleep(12)
    finally:
        updates, rate = stream.done()
    print(f"{updates} updates, {rate:.1f} updates/s")

    for keys, score in client.query("searches", count=5, timescale="minute"):
        print(f"  {':'.join(keys):<10} {score:8.2f}")

    client.close()


if __name__ == "__main__":
    main()
