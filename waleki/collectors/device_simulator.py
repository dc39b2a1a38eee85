"""
Field device simulator for the Waleki telemetry API
Pushes simulated water level readings to the ingestion endpoint
"""

import asyncio
import math
import random
from typing import Dict, List, Optional

import aiohttp
import structlog

from waleki.core.config import settings

logger = structlog.get_logger(__name__)

INGEST_PATH = "/api/data/ingest"

def simulate_reading(device_id: int, step: int, rng: Optional[random.Random] = None) -> Dict:
    """One reading: a slow sine wave around 2.5 m, 20-30 C, a draining battery"""
    rng = rng or random
    variation = math.sin(step * 0.3) * 0.5 + rng.random() * 0.2 - 0.1
    return {
        "deviceId": device_id,
        "level": round(max(0.1, 2.5 + variation), 2),
        "temperature": round(20 + rng.random() * 10, 1),
        "batteryLevel": max(20, 100 - step // 2),
    }

class DeviceSimulator:
    """Posts one reading per device on every tick"""

    def __init__(self, base_url: str, device_ids: List[int], interval: Optional[int] = None):
        self.base_url = base_url.rstrip("/")
        self.device_ids = device_ids
        self.interval = interval or settings.simulator_interval
        self.session: Optional[aiohttp.ClientSession] = None
        self.running = False
        self.step = 0

    async def start(self):
        """Start the simulator"""
        self.running = True
        logger.info("Starting device simulator", devices=self.device_ids, base_url=self.base_url)

        async with aiohttp.ClientSession() as session:
            self.session = session
            await self._push_loop()

    async def stop(self):
        """Stop the simulator"""
        self.running = False
        if self.session:
            await self.session.close()
        logger.info("Device simulator stopped")

    async def _push_loop(self):
        """Main push loop"""
        while self.running:
            await self.push_all()
            self.step += 1
            await asyncio.sleep(self.interval)

    async def push_all(self) -> int:
        """Push a reading for every device; returns how many were accepted"""
        accepted = 0
        for device_id in self.device_ids:
            if await self.push_reading(simulate_reading(device_id, self.step)):
                accepted += 1
        return accepted

    async def push_reading(self, payload: Dict) -> bool:
        """Post a reading; failures are logged and reported as False"""
        url = f"{self.base_url}{INGEST_PATH}"
        try:
            async with self.session.post(url, json=payload) as response:
                body = await response.json()
                if response.status != 201:
                    logger.warning("Reading rejected",
                                   device_id=payload["deviceId"], status=response.status,
                                   detail=body.get("detail"))
                    return False

                for alert in body.get("alerts") or []:
                    logger.warning("Device alert", device_id=payload["deviceId"], alert=alert)
                logger.info("Reading pushed", device_id=payload["deviceId"], level=payload["level"])
                return True

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Error pushing reading", device_id=payload["deviceId"], error=str(e))
            return False

def _configured_device_ids() -> List[int]:
    raw = settings.simulator_device_ids or "1"
    return [int(part) for part in raw.split(",") if part.strip()]

async def main():
    """Main entry point for the simulator"""
    simulator = DeviceSimulator(settings.simulator_base_url, _configured_device_ids())

    try:
        await simulator.start()
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        await simulator.stop()

if __name__ == "__main__":
    asyncio.run(main())
