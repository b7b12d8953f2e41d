"""
Browse a DynamoDB 'messages' table page by page from the terminal.

Table schema: partition key 'channel' (S), sort key 'sent_at' (N).

    python examples/browse_messages.py general

Commands: n = next page, p = previous page, r = refresh, q = quit.
"""

import logging
import sys

from nextprev import (
    DynamoQuery,
    Loaded,
    LoadingInitialResults,
    PaginatedQueryController,
    QueryClient,
)

logging.basicConfig(level=logging.INFO)

get_messages = DynamoQuery("messages", pk_name="channel", sk_name="sent_at")


def main(channel: str) -> None:
    client = QueryClient()
    args = {"pk": channel}
    options = {"initial_num_items": 10}

    with PaginatedQueryController(client.subscribe) as controller:
        while True:
            result = controller.use(get_messages, args, options)

            if isinstance(result, LoadingInitialResults):
                print("Loading…")
                continue

            if not isinstance(result, Loaded):
                raise RuntimeError(f"Unexpected state {result.tag}")

            print(f"--- page {result.page_num} ---")
            for item in result.page:
                print(f"[{item['sent_at']}] {item.get('content', '')}")

            command = input("(n)ext (p)rev (r)efresh (q)uit > ").strip().lower()
            if command == "n" and result.load_next:
                result.load_next()
            elif command == "p" and result.load_prev:
                result.load_prev()
            elif command == "r":
                client.invalidate(get_messages)
            elif command == "q":
                break


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "general")
