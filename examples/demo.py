# ProxyCheckClient Example Usage

import os

from proxycheck import (
    AuthenticationError,
    ProxyCheckClient,
    RateLimitError,
    ValidationError,
    configure_logging,
)


def main():
    """Demonstrate ProxyCheckClient usage with examples."""

    print("=== ProxyCheckClient Demo ===\n")

    api_key = os.environ.get("PROXYCHECK_API_KEY", "your-api-key")
    client = ProxyCheckClient(api_key=api_key, retries=2)

    # Example 1: Single address
    print("1. Checking a single IP address:")
    try:
        result = client.check.check_address("8.8.8.8", {"vpn_detection": 1, "risk_data": 1})
        print(f"   Status: {result.get('status')}")
        print(f"   Block: {result.get('block')} ({result.get('block_reason')})")
    except Exception as e:
        print(f"   Error: {e}")

    print()

    # Example 2: Batch check
    print("2. Checking several addresses in one request:")
    try:
        result = client.check.check_addresses(["1.1.1.1", "8.8.4.4"], {"asn_data": True})
        for address in ("1.1.1.1", "8.8.4.4"):
            print(f"   {address}: proxy={result.get(address, {}).get('proxy')}")
    except Exception as e:
        print(f"   Error: {e}")

    print()

    # Example 3: Rate-limit snapshot
    print("3. Latest rate-limit headers:")
    info = client.get_rate_limit_info()
    if info is None:
        print("   No rate-limit headers seen yet")
    else:
        print(f"   {info.remaining}/{info.limit} remaining, resets at {info.reset}")

    print()

    # Example 4: Error handling
    print("4. Error handling demonstration:")
    try:
        client.check.check_address("8.8.8.8", {"vpn_detection": 7})
    except ValidationError as e:
        print(f"   Validation failed: {e.validation_errors}")

    try:
        client.stats.get_usage()
    except AuthenticationError as e:
        print(f"   Authentication failed: {e.message}")
    except RateLimitError as e:
        print(f"   Rate limited, retry after {e.retry_after}s")
    except Exception as e:
        print(f"   Error: {e}")

    print()

    # Example 5: File logging
    print("5. Debug logging to a file:")
    configure_logging(log_level="debug", log_file="logs/proxycheck.log", console_output=False)
    try:
        client.check.is_proxy("1.2.3.4")
        print("   Request events written to logs/proxycheck.log")
    except Exception as e:
        print(f"   Error: {e}")

    client.close()
    print("\n=== Demo completed ===")


if __name__ == "__main__":
    main()
