"""
Example: Trend Administration

Single-shot updates, score lookups, meta-information and cleanup.
"""

from datetime import datetime, timezone

from streamdrill_client import StreamDrillClient, TrendNotFoundError


def main():
    with StreamDrillClient("http://localhost:9669") as client:
        client.create("purchases", "user:item", 10000, ["day", "hour"])

        # Token-authenticated GET, no request signing
        client.update("purchases", ["alice", "book"], value=12.0)
        client.update("purchases", ["bob", "lamp"], ts=datetime.now(timezone.utc))

        print("alice/book:", client.score("purchases", ["alice", "book"]))
        for keys, score in client.scores("purchases", [["alice", "book"], ["bob", "lamp"]]):
            print(keys, score)

        client.set_meta("purchases", "title", "Purchases by user")
        print("title:", client.get_meta("purchases", "title"))

        for keys, score in client.query("purchases", filter={"user": "alice"}):
            print(keys, score)

        client.clear("purchases")
        client.delete("purchases")

        try:
            client.delete("purchases")
        except TrendNotFoundError as e:
            print(e)


if __name__ == "__main__":
    main()
