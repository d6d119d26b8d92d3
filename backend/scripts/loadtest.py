"""Load test for the /rerank endpoint.

Fires the same request repeatedly with bounded concurrency and reports
throughput, latency percentiles and the share of responses served from cache.

Usage:
    python backend/scripts/loadtest.py [--url http://localhost:8000/rerank] [--total 100] [--concurrency 10]
"""

import argparse
import asyncio
import json
import logging
import time

import httpx
import numpy as np

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

REQUEST_BODY = {
    "profile": {"institution": "UIUC", "field": "CS"},
    "goal": {"target_organization": "Google", "target_period": "junior"},
    "userEvents": [
        {"role": "research assistant", "organization": "ML Lab", "period_label": "freshman"},
        {"role": "backend intern", "organization": "Startup X", "period_label": "sophomore"},
        {"role": "SWE intern", "organization": "Google", "period_label": "junior"},
    ],
    "candidateIds": [],
    "gamma": 0.1,
    "includeAlignment": False,
    "topN": 10,
}


async def one(client: httpx.AsyncClient, url: str, body: dict) -> tuple[float, bool, bool]:
    """Send one request. Returns (latency_ms, ok, cached)."""
    t0 = time.perf_counter()
    response = await client.post(url, json=body)
    latency_ms = (time.perf_counter() - t0) * 1000
    cached = False
    if response.is_success:
        cached = bool(response.json().get("cached"))
    return latency_ms, response.is_success, cached


async def main(
    url: str,
    total: int,
    concurrency: int,
    candidate_ids: list[str],
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    body = dict(REQUEST_BODY, candidateIds=candidate_ids)
    semaphore = asyncio.Semaphore(concurrency)

    async with httpx.AsyncClient(timeout=60.0, transport=transport) as client:

        async def bounded() -> tuple[float, bool, bool]:
            async with semaphore:
                return await one(client, url, body)

        start = time.perf_counter()
        outcomes = await asyncio.gather(*(bounded() for _ in range(total)))
        duration = time.perf_counter() - start

    latencies = np.array([o[0] for o in outcomes])
    ok = sum(1 for o in outcomes if o[1])
    cached = sum(1 for o in outcomes if o[2])
    summary = {
        "total": total,
        "concurrency": concurrency,
        "ok": ok,
        "qps": round(total / duration, 2),
        "p50_ms": round(float(np.percentile(latencies, 50)), 1),
        "p95_ms": round(float(np.percentile(latencies, 95)), 1),
        "cached": cached,
        "cache_rate": f"{cached / total * 100:.1f}%",
    }
    logger.info(json.dumps(summary))
    return summary


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load test the rerank endpoint")
    parser.add_argument("--url", default="http://localhost:8000/rerank")
    parser.add_argument("--total", type=int, default=100)
    parser.add_argument("--concurrency", type=int, default=10)
    parser.add_argument("--candidate-ids", nargs="*", default=[])
    args = parser.parse_args()
    asyncio.run(main(args.url, args.total, args.concurrency, args.candidate_ids))
