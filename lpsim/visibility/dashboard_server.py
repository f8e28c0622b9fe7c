"""Minimal FastAPI server exposing scenario telemetry and Prometheus metrics."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from lpsim.common.models import SimulationConfig
from lpsim.simulator.fixed_point import decode_sqrt_price_x96
from lpsim.simulator.telemetry import split_balance
from lpsim.visibility.telemetry_sink import MemorySink


class DashboardServer:
    def __init__(self, config: SimulationConfig, sink: MemorySink, status: str = "completed"):
        self.config = config
        self.sink = sink
        self.status = status
        self.app = FastAPI(title="lpsim")
        self._wire_routes()

    def _record_payload(self, record) -> dict:
        payload = {
            "iteration": record.iteration,
            "line": record.line(),
            "price": record.price,
            "balance0": record.balance0,
            "balance1": record.balance1,
            "tick": record.tick,
        }
        if record.sqrt_price_x96 is not None:
            payload["sqrt_price_x96"] = str(record.sqrt_price_x96)
            payload["price_decimal"] = str(
                decode_sqrt_price_x96(record.sqrt_price_x96, self.config.decimals0, self.config.decimals1)
            )
        if record.raw_balance0 is not None and record.raw_balance1 is not None:
            # full-precision view; the telemetry line keeps whole units only
            payload["balance0_detail"] = ".".join(split_balance(record.raw_balance0, self.config.decimals0))
            payload["balance1_detail"] = ".".join(split_balance(record.raw_balance1, self.config.decimals1))
        return payload

    def _wire_routes(self) -> None:
        @self.app.get("/health")
        async def health():
            return {
                "status": "ok",
                "scenario": self.config.name,
                "outcome": self.status,
                "records": len(self.sink.records),
            }

        @self.app.get("/metrics")
        async def metrics():
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

        @self.app.get("/records")
        async def records():
            return {
                "scenario": self.config.name,
                "pool_id": self.config.pool_key.to_id(),
                "records": [self._record_payload(r) for r in self.sink.records],
            }

        @self.app.get("/records.csv")
        async def records_csv():
            body = "".join(line + "\n" for line in self.sink.lines)
            return PlainTextResponse(body)

        @self.app.get("/records/{iteration}")
        async def record(iteration: int):
            for r in self.sink.records:
                if r.iteration == iteration:
                    return self._record_payload(r)
            raise HTTPException(status_code=404, detail=f"no record for iteration {iteration}")


__all__ = ["DashboardServer"]
