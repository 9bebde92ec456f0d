"""
AWS Lambda function to refresh the API cache via its pre-cache query.

Deploy this to Lambda and schedule with EventBridge so the cache is rebuilt
before the 6 hour TTL runs out.
"""

import json
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Trigger a cache rebuild.

    Environment Variables:
        API_URL: The service base URL (e.g., https://xxx.awsapprunner.com)
        PRECACHE_TIMEOUT: Request timeout in seconds (default: 120)

    EventBridge Rule Example:
        Schedule: cron(0 0/5 * * ? *)  # Every 5 hours
    """
    api_url = os.environ.get("API_URL")
    if not api_url:
        return {"statusCode": 500, "body": json.dumps({"error": "API_URL environment variable not set"})}

    timeout = int(os.environ.get("PRECACHE_TIMEOUT", "120"))
    endpoint = f"{api_url.rstrip('/')}/?{urllib.parse.urlencode({'f': 'preCacheAll'})}"

    request = urllib.request.Request(endpoint, method="GET", headers={"User-Agent": "LedgerPrecacheTrigger/1.0"})

    try:
        print(f"Triggering pre-cache at: {endpoint}")

        with urllib.request.urlopen(request, timeout=timeout) as response:
            result = json.loads(response.read().decode("utf-8"))
            print(f"Pre-cache wrote {len(result.get('cachedKeys', []))} keys")
            return {"statusCode": 200, "body": json.dumps({"success": True, "result": result})}

    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8") if e.fp else str(e)
        print(f"Pre-cache request failed with HTTP {e.code}: {error_body}")
        return {"statusCode": e.code, "body": json.dumps({"success": False, "error": f"HTTP {e.code}: {error_body}"})}

    except urllib.error.URLError as e:
        print(f"Pre-cache request failed: {str(e)}")
        return {"statusCode": 500, "body": json.dumps({"success": False, "error": f"Connection error: {str(e)}"})}


# For local testing
if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        os.environ["API_URL"] = sys.argv[1]

    print(json.dumps(lambda_handler({}, None), indent=2))
