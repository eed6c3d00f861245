"""
Shopper Simulation Script

Drives a running storefront with many concurrent shoppers, each with its
own session cookie: sign up, onboard, choose an order type, fill the cart
from the live menu and place the order. Also fires duplicate submissions
to check that a session can only place one order at a time.

Run from project root (server on API_BASE_URL, ENV_MODE=development):
    python scripts/simulate.py --shoppers 20
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_SHOPPERS = 20

FIRST_NAMES = ["Aarav", "Priya", "Rohan", "Ananya", "Vikram", "Sneha", "Arjun", "Kavya", "Rahul", "Isha"]
LAST_NAMES = ["Kumar", "Singh", "Sharma", "Verma", "Gupta", "Yadav", "Mishra", "Jha", "Prasad", "Sinha"]
ZONES = ["Madhuban", "Talimpur", "Dihutola", "Gangapur", "Bajitpur"]
SERVICE_MODES = ["delivery", "delivery", "pickup", "dinein"]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer details."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "full_name": f"{first} {last}",
        "email": f"{first.lower()}.{uuid.uuid4().hex[:8]}@example.com",
        "password": "pizza-lover",
        "phone": f"98{random.randint(10000000, 99999999)}",
        "address": f"House {random.randint(1, 300)}, Ward {random.randint(1, 20)}",
    }


def orderable_lines(menu: list[dict]) -> list[dict[str, Any]]:
    """Every (product, variant) pairing the menu currently sells."""
    lines = []
    for item in menu:
        if not item.get("is_available", True):
            continue
        if item.get("variants"):
            for variant in item["variants"]:
                lines.append({"product_id": item["id"], "variant_id": variant["id"]})
        else:
            lines.append({"product_id": item["id"], "variant_id": None})
    return lines


# =============================================================================
# SHOPPER FLOW
# =============================================================================

async def run_shopper(shopper_num: int, menu_lines: list[dict]) -> dict[str, Any]:
    """One complete visit, from sign-up to placed order."""
    customer = generate_random_customer()
    mode = random.choice(SERVICE_MODES)
    start_time = time.time()

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        try:
            response = await client.post("/api/auth/signup", json={
                "email": customer["email"],
                "password": customer["password"],
                "full_name": customer["full_name"],
            })
            response.raise_for_status()

            response = await client.post("/api/profile/onboarding", json={
                "full_name": customer["full_name"],
                "phone": customer["phone"],
                "address": customer["address"],
            })
            response.raise_for_status()

            selection = {"service_mode": mode}
            if mode == "delivery":
                selection["delivery_zone"] = random.choice(ZONES)
            response = await client.put("/api/selection", json=selection)
            response.raise_for_status()

            for line in random.sample(menu_lines, k=min(len(menu_lines), random.randint(1, 4))):
                response = await client.post("/api/cart/items", json={
                    **line,
                    "quantity": random.randint(1, 3),
                })
                response.raise_for_status()

            response = await client.post("/api/orders")
            elapsed = round(time.time() - start_time, 3)
            data = response.json()

            if response.status_code == 200:
                return {
                    "shopper_num": shopper_num,
                    "success": True,
                    "order_id": data.get("order_id"),
                    "total": Decimal(str(data.get("grand_total", "0"))),
                    "time": elapsed,
                    "mode": mode,
                }
            return {
                "shopper_num": shopper_num,
                "success": False,
                "blocked": response.status_code == 400,
                "error": str(data.get("error", response.text))[:100],
                "time": elapsed,
                "mode": mode,
            }
        except httpx.HTTPError as e:
            elapsed = round(time.time() - start_time, 3)
            return {
                "shopper_num": shopper_num,
                "success": False,
                "error": str(e)[:100],
                "time": elapsed,
                "mode": mode,
            }


async def run_double_submit(menu_lines: list[dict]) -> dict[str, int]:
    """Two concurrent order submissions from one session; one must be refused."""
    customer = generate_random_customer()
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        await client.post("/api/auth/signup", json={
            "email": customer["email"],
            "password": customer["password"],
            "full_name": customer["full_name"],
        })
        await client.post("/api/profile/onboarding", json={
            "full_name": customer["full_name"],
            "phone": customer["phone"],
        })
        await client.put("/api/selection", json={"service_mode": "pickup"})
        await client.post("/api/cart/items", json={**menu_lines[0], "quantity": 2})

        responses = await asyncio.gather(
            client.post("/api/orders"),
            client.post("/api/orders"),
        )
    codes = [r.status_code for r in responses]
    return {"placed": codes.count(200), "refused": len(codes) - codes.count(200)}


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_shoppers: int = TOTAL_SHOPPERS) -> dict[str, Any]:
    """
    Run the shopper simulation.

    Args:
        num_shoppers: Number of concurrent shoppers
    """
    print("=" * 70)
    print("🔥 SHOPPER SIMULATION - CONCURRENT CHECKOUTS")
    print("=" * 70)
    print(f"📋 Shoppers: {num_shoppers}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        response = await client.get("/api/menu")
        response.raise_for_status()
        menu_lines = orderable_lines(response.json())

    if not menu_lines:
        print("\n❌ The menu is empty; nothing to order.")
        return {"total": num_shoppers, "successful": 0, "failed": num_shoppers}

    start_time = time.time()
    print("\n🚀 Sending shoppers...\n")
    results = await asyncio.gather(*(run_shopper(i + 1, menu_lines) for i in range(num_shoppers)))
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    blocked = [r for r in results if r.get("blocked")]
    failed = [r for r in results if not r["success"] and not r.get("blocked")]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Orders Placed: {len(successful)}/{num_shoppers}")
    print(f"🚧 Blocked at Checkout: {len(blocked)}/{num_shoppers}")
    print(f"❌ Failed: {len(failed)}/{num_shoppers}")
    print(f"⏱️  Total Time: {total_time}s")

    for mode in sorted(set(SERVICE_MODES)):
        placed = len([r for r in successful if r["mode"] == mode])
        attempted = len([r for r in results if r["mode"] == mode])
        print(f"   {mode}: {placed}/{attempted} placed")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum((r["total"] for r in successful), Decimal("0"))

        print(f"\n📈 Performance Metrics:")
        print(f"   Average Visit: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{total_revenue}")

    if blocked or failed:
        print(f"\n⚠️  Unplaced Order Details (showing first 5):")
        for r in (blocked + failed)[:5]:
            print(f"   Shopper #{r['shopper_num']} [{r['mode']}]: {r.get('error', 'Unknown error')}")

    print("\n🔁 Duplicate submission check...")
    double = await run_double_submit(menu_lines)
    if double["placed"] == 1:
        print(f"   ✅ One order placed, {double['refused']} refused")
    else:
        print(f"   ❌ {double['placed']} orders placed from one session")

    print("=" * 70)

    return {
        "total": num_shoppers,
        "successful": len(successful),
        "blocked": len(blocked),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    """Pre-flight health check."""
    print("\n1️⃣ Health Check...")
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=10.0) as client:
        try:
            response = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Unreachable: {e}")
            return False

    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False

    data = response.json()
    print(f"   ✅ Status: {data.get('status')}")
    print(f"   Data Platform: {data.get('data_platform')}")
    print(f"   Auth Provider: {data.get('auth_provider')}")
    print(f"   State Backend: {data.get('state_backend')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Shopper Simulation Script")
    parser.add_argument("--shoppers", type=int, default=TOTAL_SHOPPERS, help="Number of shoppers")
    parser.add_argument("--skip-health", action="store_true", help="Skip the health check")
    args = parser.parse_args()

    if not args.skip_health and not asyncio.run(check_health()):
        print("\n❌ Pre-flight check failed. Is the server running?")
        sys.exit(1)

    asyncio.run(run_simulation(args.shoppers))
