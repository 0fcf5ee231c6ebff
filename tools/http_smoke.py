import sys
sys.path.append(".")
import json

from dotenv import load_dotenv

from solana_tracker.config import get_settings
from solana_tracker.data_api import DataApiClient
from solana_tracker.exceptions import DataApiError, RateLimitError
from solana_tracker.utils.logger import setup_logging

SOL = "So11111111111111111111111111111111111111112"


def main():
    load_dotenv()
    setup_logging(get_settings())
    token = sys.argv[1] if len(sys.argv) > 1 else SOL
    with DataApiClient() as client:
        try:
            print(json.dumps(client.get_price(token, price_changes=True), indent=2))
            trending = client.get_trending_tokens("1h")
            print("trending:", len(trending))
        except RateLimitError as e:
            print("rate limited, retry after", e.retry_after)
        except DataApiError as e:
            print("request failed:", e.status, e)


if __name__ == "__main__":
    main()
